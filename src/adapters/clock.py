from datetime import UTC, date, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now_utc().date()


class FrozenClock:
    """
    Clock that returns a fixed time until advanced.

    Useful for deterministic testing of quarter status and cache expiry.
    """

    def __init__(self, frozen_utc: datetime) -> None:
        if frozen_utc.tzinfo is None:
            frozen_utc = frozen_utc.replace(tzinfo=UTC)
        self._now = frozen_utc.astimezone(UTC)

    @classmethod
    def on(cls, day: date) -> "FrozenClock":
        return cls(datetime(day.year, day.month, day.day, 12, tzinfo=UTC))

    def now_utc(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)
