from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.vehicle import Vehicle, VehicleStatus

from conftest import FIXED_NOW, auth_headers

URL = "/api/v1/vehicles"

NEW_VEHICLE = {
    "name": "Sprinter 1",
    "make": "Mercedes",
    "model": "Sprinter",
    "year": 2023,
    "licensePlate": "abc-123",
    "vin": "wdb9066331s123456",
    "fuelType": "diesel",
    "mileage": 1200,
    "purchaseDate": "2023-05-01T00:00:00Z",
    "purchasePrice": 52000.50,
}


class TestVehicleCrud:

    def test_create_normalizes_plate_and_vin(self, client, manager):
        res = client.post(URL, json=NEW_VEHICLE, headers=auth_headers(manager))

        assert res.status_code == 201
        data = res.json()["data"]
        assert data["licensePlate"] == "ABC-123"
        assert data["vin"] == "WDB9066331S123456"
        assert data["status"] == "active"
        assert data["purchasePrice"] == 52000.50
        assert data["currentAssignment"] is None

    def test_duplicate_plate(self, client, manager, make_vehicle):
        existing = make_vehicle()
        res = client.post(URL, json={**NEW_VEHICLE, "licensePlate": existing.licensePlate},
                          headers=auth_headers(manager))
        assert res.status_code == 409
        assert res.json()["error"]["field"] == "licensePlate"

    def test_invalid_vin_and_year(self, client, manager):
        headers = auth_headers(manager)
        assert client.post(URL, json={**NEW_VEHICLE, "vin": "SHORT"}, headers=headers).status_code == 422
        assert client.post(URL, json={**NEW_VEHICLE, "year": 1800}, headers=headers).status_code == 422

    def test_plain_user_cannot_create(self, client, driver):
        assert client.post(URL, json=NEW_VEHICLE, headers=auth_headers(driver)).status_code == 403

    def test_update_status(self, client, manager, make_vehicle):
        vehicle = make_vehicle()
        res = client.put(f"{URL}/{vehicle.id}", json={"status": "maintenance", "mileage": 55000},
                         headers=auth_headers(manager))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["status"] == "maintenance"
        assert data["mileage"] == 55000
        assert data["make"] == "Ford"

    def test_list_search_and_status(self, client, driver, make_vehicle):
        make_vehicle(make="Toyota", model="Hiace")
        make_vehicle(status=VehicleStatus.RETIRED)
        headers = auth_headers(driver)

        res = client.get(URL, params={"search": "hiace"}, headers=headers)
        assert [v["model"] for v in res.json()["data"]] == ["Hiace"]

        res = client.get(URL, params={"status": "retired"}, headers=headers)
        assert res.json()["meta"]["total"] == 1

    def test_detail_shows_current_assignment(self, client, db, driver, make_vehicle):
        vehicle = make_vehicle()
        db.add(DriverAssignment(vehicleId=vehicle.id, userId=driver.id, startDate=FIXED_NOW))
        db.commit()

        data = client.get(f"{URL}/{vehicle.id}", headers=auth_headers(driver)).json()["data"]

        assert data["currentAssignment"]["user"]["id"] == driver.id
        assert data["maintenanceRecords"] == []
        assert data["trips"] == []


class TestVehicleDeletion:

    def test_assigned_vehicle_cannot_be_deleted(self, client, db, admin, driver, make_vehicle):
        vehicle = make_vehicle()
        db.add(DriverAssignment(vehicleId=vehicle.id, userId=driver.id, startDate=FIXED_NOW))
        db.commit()

        res = client.delete(f"{URL}/{vehicle.id}", headers=auth_headers(admin))

        assert res.status_code == 409
        assert res.json()["error"]["code"] == "CONFLICT"

    def test_delete_is_admin_only(self, client, admin, manager, make_vehicle):
        vehicle = make_vehicle()
        assert client.delete(f"{URL}/{vehicle.id}", headers=auth_headers(manager)).status_code == 403

        res = client.delete(f"{URL}/{vehicle.id}", headers=auth_headers(admin))
        assert res.status_code == 200
        assert res.json()["data"] == {"id": vehicle.id}

    def test_delete_removes_completed_history(self, client, db, admin, driver, make_vehicle):
        vehicle = make_vehicle()
        vehicle_id = vehicle.id
        db.add(DriverAssignment(vehicleId=vehicle.id, userId=driver.id, startDate=FIXED_NOW,
                                endDate=FIXED_NOW, status=AssignmentStatus.COMPLETED))
        db.commit()

        assert client.delete(f"{URL}/{vehicle_id}", headers=auth_headers(admin)).status_code == 200
        db.expire_all()
        assert db.query(Vehicle).filter(Vehicle.id == vehicle_id).first() is None
        assert db.query(DriverAssignment).count() == 0
