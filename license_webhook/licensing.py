"""License expiry arithmetic."""

from __future__ import annotations

from datetime import datetime, timezone

LICENSE_TERM_YEARS = 1


def one_year_from(moment: datetime) -> datetime:
    """Return the same wall-clock instant one calendar year later.

    29 February rolls forward to 1 March when the next year is not a leap year.
    """
    year = moment.year + LICENSE_TERM_YEARS
    try:
        return moment.replace(year=year)
    except ValueError:
        return moment.replace(year=year, month=3, day=1)


def license_expiry(now: datetime | None = None) -> datetime:
    """Expiry for a license purchased at ``now`` (defaults to the current UTC time)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return one_year_from(now)
