"""Human readable formatting for the history views"""

from datetime import datetime


def item_time_ago(value: datetime, now: datetime) -> str:
    """Coarse "N units ago" label; months are 30 days, years 12 months"""
    time_ago = int((now - value).total_seconds())

    if time_ago < 60:
        return f"{time_ago} seconds ago"

    time_ago //= 60
    if time_ago < 60:
        return f"{time_ago} minutes ago"

    time_ago //= 60
    if time_ago < 24:
        return f"{time_ago} hours ago"

    time_ago //= 24
    if time_ago < 30:
        return f"{time_ago} days ago"

    time_ago //= 30
    if time_ago < 12:
        return f"{time_ago} months ago"

    time_ago //= 12
    return f"{time_ago} years ago"


def display_size(size: int) -> str:
    """Decimal size label (1 KB = 1000 bytes)"""
    if size < 1000:
        return f"{size} Bytes"

    size //= 1000
    if size < 1000:
        return f"{size} Kilobytes"

    size //= 1000
    if size < 1000:
        return f"{size} Megabytes"

    size //= 1000
    return f"{size} Gigabytes"
