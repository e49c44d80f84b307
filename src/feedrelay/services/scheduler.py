from datetime import datetime, timedelta
from typing import Optional


def next_run_time(interval_seconds: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    return now + timedelta(seconds=max(interval_seconds, 1))


def seconds_until(run: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now()
    return max((run - now).total_seconds(), 0.0)
