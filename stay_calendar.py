"""
Stay Calendar
=============
Turns a "DD/MM/YYYY - DD/MM/YYYY" stay string plus a night count into an
ordered list of day descriptors, each tagged with its rate type and its
position in the stay (check-in, middle, check-out).

Rate types:
  - weekday / saturday / sunday from the day of week
  - public_holiday when the date is in the injected holiday set
    (a holiday on a weekend is still a public_holiday)
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


RATE_WEEKDAY = 'weekday'
RATE_SATURDAY = 'saturday'
RATE_SUNDAY = 'sunday'
RATE_PUBLIC_HOLIDAY = 'public_holiday'

RATE_TYPES = (RATE_WEEKDAY, RATE_SATURDAY, RATE_SUNDAY, RATE_PUBLIC_HOLIDAY)

DATE_FORMAT = '%d/%m/%Y'
ISO_DATE_FORMAT = '%Y-%m-%d'
STAY_SEPARATOR = ' - '


# =====================================================
# DATE PARSING
# =====================================================

def parse_date(value: Any) -> Optional[date]:
    """
    Parse a single date.

    Accepts date/datetime objects, "DD/MM/YYYY" and ISO "YYYY-MM-DD"
    (a trailing time part on ISO strings is ignored). Returns None when
    the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in (DATE_FORMAT, ISO_DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO timestamps such as "2025-01-10T00:00:00.000Z"
    if len(text) > 10 and text[4:5] == '-' and text[10:11] in ('T', ' '):
        try:
            return datetime.strptime(text[:10], ISO_DATE_FORMAT).date()
        except ValueError:
            pass

    return None


def format_date(day: date) -> str:
    return day.strftime(DATE_FORMAT)


def parse_stay_dates(dates_of_stay: Any) -> Tuple[Optional[date], Optional[date]]:
    """Split a "start - end" stay string into (start, end); either may be None."""
    if not dates_of_stay or not isinstance(dates_of_stay, str):
        return None, None

    parts = dates_of_stay.split(STAY_SEPARATOR)
    start = parse_date(parts[0])
    end = parse_date(parts[1]) if len(parts) > 1 else None
    return start, end


def build_dates_of_stay(check_in: Any, check_out: Any) -> Tuple[Optional[str], Optional[int]]:
    """
    Build the composite stay string and night count from separate
    check-in / check-out answers.

    Returns (None, None) if either date is missing or unparseable, or if
    check-out falls before check-in.
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if not start or not end:
        return None, None

    nights = (end - start).days
    if nights < 0:
        logger.warning(f"Check-out {end} is before check-in {start}; ignoring stay dates")
        return None, None

    return f"{format_date(start)}{STAY_SEPARATOR}{format_date(end)}", nights


def coerce_nights(nights: Any) -> Optional[int]:
    """Night count as a non-negative int, or None when unusable."""
    if nights is None or isinstance(nights, bool):
        return None
    try:
        value = int(nights)
    except (TypeError, ValueError):
        return None
    if value < 0:
        return None
    return value


def stay_end_date(start: date, nights: int) -> Optional[date]:
    """Check-out date for a stay, or None when it falls outside the calendar."""
    try:
        return start + timedelta(days=nights)
    except OverflowError:
        logger.warning(f"Stay of {nights} night(s) from {start} ends outside the supported date range")
        return None


def normalize_holiday_dates(holidays: Optional[Iterable[Any]]) -> FrozenSet[date]:
    """
    Build a holiday set from dates, date strings or holiday dicts
    (``{"date": "2025-01-26", ...}`` as returned by the holiday oracle).
    Unparseable entries are skipped.
    """
    if not holidays:
        return frozenset()

    result = set()
    for holiday in holidays:
        raw = holiday.get('date') if isinstance(holiday, dict) else holiday
        parsed = parse_date(raw)
        if parsed is None:
            logger.debug(f"Skipping unparseable holiday entry: {holiday!r}")
            continue
        result.add(parsed)
    return frozenset(result)


# =====================================================
# DAY CLASSIFIER
# =====================================================

class DayClassifier:
    """Maps a calendar day to the rate bucket used for pricing."""

    @staticmethod
    def weekday_index(day: date) -> int:
        """Day of week with 0 = Sunday .. 6 = Saturday."""
        return (day.weekday() + 1) % 7

    @staticmethod
    def classify(day: date, holiday_set: Optional[Iterable[date]] = None) -> str:
        if holiday_set and day in holiday_set:
            return RATE_PUBLIC_HOLIDAY

        index = DayClassifier.weekday_index(day)
        if index == 0:
            return RATE_SUNDAY
        if index == 6:
            return RATE_SATURDAY
        return RATE_WEEKDAY


# =====================================================
# STAY CALENDAR
# =====================================================

class StayCalendar:
    """
    Generates the day-by-day layout of a stay.

    Day 0 is the check-in day and the last day is the check-out day.
    A zero-night stay yields one day flagged as both.
    """

    @staticmethod
    def generate_stay_dates(
        dates_of_stay: Any,
        nights: Any,
        holidays: Optional[Iterable[Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Args:
            dates_of_stay: "DD/MM/YYYY - DD/MM/YYYY"; only the start is used
            nights: number of nights, authoritative for the stay length
            holidays: holiday dates / strings / dicts for rate classification

        Returns:
            List of nights + 1 day descriptors, or [] if the input is unusable
        """
        start, _ = parse_stay_dates(dates_of_stay)
        night_count = coerce_nights(nights)

        if start is None:
            if dates_of_stay:
                logger.warning(f"Could not parse stay start date from {dates_of_stay!r}")
            return []
        if night_count is None:
            logger.warning(f"Invalid night count {nights!r} for stay {dates_of_stay!r}")
            return []

        if stay_end_date(start, night_count) is None:
            return []

        holiday_set = normalize_holiday_dates(holidays)
        total_days = night_count + 1

        days = []
        for i in range(total_days):
            current = start + timedelta(days=i)
            is_check_in = i == 0
            is_check_out = i == total_days - 1
            days.append({
                'date': format_date(current),
                'calendar_date': current,
                'weekday_index': DayClassifier.weekday_index(current),
                'rate_type': DayClassifier.classify(current, holiday_set),
                'is_check_in': is_check_in,
                'is_check_out': is_check_out,
                'is_middle': not is_check_in and not is_check_out,
            })

        return days

    @staticmethod
    def nights_breakdown(stay_days: List[Dict[str, Any]]) -> Dict[str, int]:
        """
        Count the nights of a stay per rate type.

        A night is attributed to the day it starts on, so the check-out day
        is not counted.
        """
        breakdown = {rate_type: 0 for rate_type in RATE_TYPES}
        for day in stay_days[:-1]:
            breakdown[day['rate_type']] = breakdown.get(day['rate_type'], 0) + 1
        return breakdown

    @staticmethod
    def nights_for_rate_type(rate_type: Optional[str], breakdown: Dict[str, int]) -> int:
        """Nights matching a rate type; all nights when the rate type is unset."""
        if not rate_type:
            return sum(breakdown.values())
        return breakdown.get(rate_type, 0)
