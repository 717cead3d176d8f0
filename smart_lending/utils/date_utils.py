"""Date manipulation utilities"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def format_repayment_date(moment: datetime) -> str:
    """Render a repayment date as YYYY-MM-DD"""
    return moment.date().isoformat()
