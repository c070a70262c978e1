from datetime import UTC, datetime
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


def isoformat_utc(moment: datetime) -> str:
    # Millisecond precision with a Z suffix, e.g. 2026-10-19T12:00:00.000Z
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
