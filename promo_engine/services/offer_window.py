
import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateInput = Union[date, datetime, str, None]


class OfferStatus(str, Enum):
    ACTIVE = "active"
    UPCOMING = "upcoming"
    EXPIRED = "expired"


def parse_offer_date(value: DateInput) -> Optional[date]:
    """
    Reduce a loosely-typed offer bound to its calendar day.

    Accepts ``date``/``datetime`` objects and ISO-8601 strings (``Z`` suffix
    allowed). Anything that cannot be parsed is treated as an absent bound and
    logged, so a bad upstream value never breaks a listing.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(s[:10])
        except ValueError:
            logger.warning("Ignoring unparseable offer date %r", value)
            return None
    logger.warning("Ignoring offer date of unsupported type %s", type(value).__name__)
    return None


def classify_offer_window(
    is_active: bool,
    start_date: DateInput,
    end_date: DateInput,
    now: Union[date, datetime],
) -> OfferStatus:
    """
    Classify a combo or coupon as active, upcoming or expired at ``now``.

    Deactivation always wins over dates. Bounds are whole days: the start
    bound opens at 00:00 of its day and the end bound closes at the last
    instant of its day, so comparing calendar days is exact.
    """
    if not is_active:
        return OfferStatus.EXPIRED

    start = parse_offer_date(start_date)
    end = parse_offer_date(end_date)
    if start is None and end is None:
        return OfferStatus.ACTIVE

    today = now.date() if isinstance(now, datetime) else now
    if start is not None and today < start:
        return OfferStatus.UPCOMING
    if end is not None and today > end:
        return OfferStatus.EXPIRED
    return OfferStatus.ACTIVE
