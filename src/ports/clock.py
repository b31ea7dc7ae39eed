from datetime import date, datetime
from typing import Protocol


class ClockPort(Protocol):
    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...

    def today(self) -> date:
        """Return the current calendar date used for quarter status."""
        ...
