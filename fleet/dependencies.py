from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from fleet.database import get_db
from fleet.models.user import User
from fleet.utils.permissions import Caller
from fleet.utils.security import verify_access_token
from fleet.utils.exceptions import UnauthorizedException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate JWT Bearer token and return the current User.
    Raises 401 if token is missing, invalid, expired, or its user no longer exists.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    user_id = payload.get("sub")

    if user_id is None or not str(user_id).isdigit():
        raise UnauthorizedException("Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise UnauthorizedException("Token user no longer exists")

    return user


# ─── Caller Context ───────────────────────────────────────────────────────────
def get_caller(current_user: User = Depends(get_current_user)) -> Caller:
    """
    Any authenticated user, reduced to the explicit caller value services expect.
    Role checks happen inside the services, per operation.
    """
    return Caller(id=current_user.id, role=current_user.role)
