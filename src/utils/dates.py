"""Calendar helpers shared by task models and the query engine."""

from datetime import datetime, timedelta


def align_to(value: datetime, reference: datetime) -> datetime:
    """Make ``value`` comparable with ``reference``.

    Naive values are read as wall-clock time in the reference's zone. Aware
    values compared against a naive reference are converted to local time.
    """
    if reference.tzinfo is not None:
        if value.tzinfo is None:
            return value.replace(tzinfo=reference.tzinfo)
        return value.astimezone(reference.tzinfo)
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the calendar day containing ``moment``."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Midnight of the most recent Sunday at or before ``moment``."""
    # weekday(): Monday == 0 ... Sunday == 6
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment) - timedelta(days=days_since_sunday)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def start_of_next_month(moment: datetime) -> datetime:
    first = start_of_month(moment)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)
