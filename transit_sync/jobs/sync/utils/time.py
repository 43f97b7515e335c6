from datetime import time
from typing import Optional

def parse_time_of_day(value) -> Optional[time]:
    """
    Parse "HH:MM" or "HH:MM:SS" into a naive time of day.
    Returns None for blank or unparsable input (including 24:xx style values).
    """
    s = (value or "").strip() if isinstance(value, str) else ""
    if not s:
        return None

    parts = s.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        return None

    h, m = int(parts[0]), int(parts[1])
    sec = int(parts[2]) if len(parts) == 3 else 0
    if not (0 <= h <= 23 and 0 <= m <= 59 and 0 <= sec <= 59):
        return None
    return time(h, m, sec)
