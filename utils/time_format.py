from datetime import datetime, timedelta
from typing import Optional


def format_travel_time(minutes: float) -> str:
    """'1h 25m' from an hour upwards, '45m' below."""
    total = int(round(minutes))
    if total >= 60:
        hours, mins = divmod(total, 60)
        return f"{hours}h {mins}m"
    return f"{total}m"


def eta_clock(minutes: float, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return (now + timedelta(minutes=minutes)).strftime("%H:%M")
