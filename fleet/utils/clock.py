from datetime import datetime, timezone
from typing import Callable

# Services take a clock instead of reading system time so tests can pin "now".
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
