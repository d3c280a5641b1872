"""
Care Schedule Normalizer
========================
Turns the guest's raw "when do you require care" answer into a per-day care
schedule for the actual stay.

Check-in / check-out rule:
  - check-in day: evening care only (guest arrives in the afternoon)
  - check-out day: morning care only (guest leaves before lunch)
  - middle days: care as requested
  - single-day stay (check-in and check-out): the check-in rule applies

The normalizer never raises: bad JSON, missing care or missing stay dates
all produce the empty analysis.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json
import logging
import re

from errors import CareDataError
from stay_calendar import StayCalendar, parse_date

logger = logging.getLogger(__name__)


PERIODS = ('morning', 'afternoon', 'evening')

NO_CARE_VALUES = {'no care required', 'no', 'none'}

ZERO = Decimal('0')
MINUTES_PER_HOUR = Decimal('60')

_DURATION_RE = re.compile(
    r'^(?P<value>\d+(?:\.\d+)?|\.\d+)\s*(?P<unit>hours?|minutes?)?$'
)


# =====================================================
# DURATION PARSER
# =====================================================

def parse_duration(text: Any) -> Decimal:
    """
    Parse a duration such as "1.5 hours", "45 minutes" or "2" into hours.

    Unrecognized, empty or non-string input returns 0.
    """
    if not text or not isinstance(text, str):
        return ZERO

    match = _DURATION_RE.match(text.strip().lower())
    if not match:
        return ZERO

    try:
        value = Decimal(match.group('value'))
    except InvalidOperation:
        return ZERO

    unit = match.group('unit') or 'hours'
    if unit.startswith('minute'):
        return value / MINUTES_PER_HOUR
    return value


def is_care_required(carers: Any) -> bool:
    """
    False when the carers answer says no care is needed.

    A missing carers value does not cancel the entry; only an explicit
    "No care required" / "no" / "none" (or False) does.
    """
    if carers is None:
        return True
    if isinstance(carers, bool):
        return carers
    text = str(carers).strip().lower()
    if not text:
        return True
    return text not in NO_CARE_VALUES


def parse_json_field(value: Any) -> Any:
    """
    Decode a field that may hold either a structure or its JSON encoding.

    Returns None when a string fails to decode.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        logger.warning(f"Could not decode JSON field: {e}")
        return None


def _hours_from_default(value: Any) -> Decimal:
    """Hours for one period of a default profile ({duration, carers}, string or number)."""
    if isinstance(value, dict):
        if not is_care_required(value.get('carers')):
            return ZERO
        return parse_duration(value.get('duration'))
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        hours = Decimal(str(value))
        return hours if hours.is_finite() and hours > 0 else ZERO
    return ZERO


def _has_default_duration(value: Any) -> bool:
    if isinstance(value, dict):
        return bool(value.get('duration'))
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float, Decimal)) and value != ''


def has_default_care(default_values: Any) -> bool:
    """True when a defaults block gives a duration for at least one period."""
    return isinstance(default_values, dict) and any(
        _has_default_duration(default_values.get(period)) for period in PERIODS
    )


def empty_profile() -> Dict[str, Decimal]:
    return {period: ZERO for period in PERIODS}


# =====================================================
# CARE PATTERN ANALYSIS
# =====================================================

CARE_PATTERN_DESCRIPTIONS = {
    'no-care': 'No care assistance required',
    'minimal-care': 'Minimal care assistance needed (up to 2 hours daily)',
    'moderate-care': 'Moderate care assistance required (2-6 hours daily)',
    'high-care': 'High level care assistance needed (6-12 hours daily)',
    'intensive-care': 'Intensive care assistance required (12+ hours daily)',
}


def determine_care_pattern(hours_per_day: Decimal) -> str:
    if hours_per_day <= 0:
        return 'no-care'
    if hours_per_day <= 2:
        return 'minimal-care'
    if hours_per_day <= 6:
        return 'moderate-care'
    if hours_per_day <= 12:
        return 'high-care'
    return 'intensive-care'


def recommend_packages(hours_per_day: Decimal) -> List[str]:
    """Package codes suited to a typical day's care hours (wellness first, then NDIS)."""
    if hours_per_day <= 0:
        return ['WS', 'NDIS_SP', 'HOLIDAY_SUPPORT']
    if hours_per_day <= 6:
        return ['WHS', 'WHSP', 'NDIS_CSP']
    return ['WVHS', 'WVHSP', 'HCSP']


def describe_care(hours_per_day: Decimal, care_pattern: str, days_count: int) -> str:
    base = CARE_PATTERN_DESCRIPTIONS.get(care_pattern, 'Care requirements analysis unavailable')
    schedule = f" over {days_count} day{'s' if days_count != 1 else ''}" if days_count > 0 else ''
    hours = format(hours_per_day.quantize(Decimal('0.01')).normalize(), 'f')
    return f"{base}{schedule}. {hours} hours per typical day."


def empty_care_analysis(raw_care_data: Any = None) -> Dict[str, Any]:
    return {
        'requires_care': False,
        'total_hours_per_day': ZERO,
        'total_care_hours': ZERO,
        'daily_care_details': [],
        'care_varies': False,
        'sample_day': empty_profile(),
        'care_pattern': 'no-care',
        'recommended_packages': recommend_packages(ZERO),
        'analysis': CARE_PATTERN_DESCRIPTIONS['no-care'] + '.',
        'raw_care_data': raw_care_data,
    }


# =====================================================
# NORMALIZER
# =====================================================

class CareScheduleNormalizer:
    """
    Reconciles raw care entries against the stay calendar.

    Dates with no surviving entry fall back to the default care profile,
    then the check-in / check-out rule is applied per day.
    """

    def normalize(
        self,
        raw_care_answer: Any,
        dates_of_stay: Any,
        nights: Any,
        holidays: Optional[Iterable[Any]] = None
    ) -> Dict[str, Any]:
        try:
            entries, default_values, care_varies = self.extract_payload(raw_care_answer)
        except CareDataError as e:
            logger.warning(f"Care answer unusable, treating as no care: {e}")
            return empty_care_analysis()

        care_by_date = self.index_entries(entries)
        default_care = self.resolve_default_profile(default_values, entries)
        total_hours_per_day = sum(default_care.values(), ZERO)

        if not care_by_date and total_hours_per_day <= 0:
            logger.debug("No care entries and no usable defaults")
            return empty_care_analysis(raw_care_answer)

        stay_days = StayCalendar.generate_stay_dates(dates_of_stay, nights, holidays)
        if not stay_days:
            return empty_care_analysis(raw_care_answer)

        daily_care_details = []
        for day in stay_days:
            raw_care = dict(care_by_date.get(day['calendar_date'], default_care))
            applicable_care = self.apply_boundary_rule(raw_care, day)
            daily_care_details.append({
                'date': day['date'],
                'weekday_index': day['weekday_index'],
                'rate_type': day['rate_type'],
                'is_check_in': day['is_check_in'],
                'is_check_out': day['is_check_out'],
                'is_middle': day['is_middle'],
                'raw_care': raw_care,
                'applicable_care': applicable_care,
                'day_total_hours': sum(applicable_care.values(), ZERO),
            })

        total_care_hours = sum((d['day_total_hours'] for d in daily_care_details), ZERO)
        requires_care = total_care_hours > 0 or total_hours_per_day > 0
        care_pattern = determine_care_pattern(total_hours_per_day)

        logger.info(
            f"Care schedule: {len(daily_care_details)} day(s), total_care_hours={total_care_hours}, "
            f"hours_per_day={total_hours_per_day}, requires_care={requires_care}"
        )

        return {
            'requires_care': requires_care,
            'total_hours_per_day': total_hours_per_day,
            'total_care_hours': total_care_hours,
            'daily_care_details': daily_care_details,
            'care_varies': care_varies,
            'sample_day': dict(default_care),
            'care_pattern': care_pattern,
            'recommended_packages': recommend_packages(total_hours_per_day),
            'analysis': describe_care(total_hours_per_day, care_pattern, len(daily_care_details)),
            'raw_care_data': raw_care_answer,
        }

    # -------------------------------------------------
    # PAYLOAD
    # -------------------------------------------------

    @staticmethod
    def extract_payload(raw_care_answer: Any) -> Tuple[List[Dict], Optional[Dict], bool]:
        """
        Split a raw answer into (entries, default values, care varies).

        Accepts a flat entry list, a ``{careData | rawCareData, defaultValues,
        careVaries}`` dict, or the JSON string of either.

        Raises:
            CareDataError: if the answer is missing or not a recognised shape
        """
        payload = parse_json_field(raw_care_answer)
        if payload is None:
            raise CareDataError("no care answer")

        if isinstance(payload, list):
            return [e for e in payload if isinstance(e, dict)], None, True

        if not isinstance(payload, dict):
            raise CareDataError(f"unexpected care answer type {type(payload).__name__}")

        entries = payload.get('careData')
        if not isinstance(entries, list) or not entries:
            entries = payload.get('rawCareData')
        if not isinstance(entries, list):
            entries = []

        default_values = payload.get('defaultValues')
        if not isinstance(default_values, dict):
            default_values = None

        care_varies = bool(payload.get('careVaries'))
        return [e for e in entries if isinstance(e, dict)], default_values, care_varies

    # -------------------------------------------------
    # ENTRIES
    # -------------------------------------------------

    @staticmethod
    def parse_entry(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Parse one raw item into a care period entry; None if it is dropped."""
        period = str(entry.get('care') or '').strip().lower()
        if period not in PERIODS:
            return None

        day = parse_date(entry.get('date'))
        if day is None:
            logger.debug(f"Skipping care entry with unparseable date: {entry.get('date')!r}")
            return None

        values = entry.get('values') or {}
        if not isinstance(values, dict):
            values = {}

        hours = parse_duration(values.get('duration'))
        carers_required = is_care_required(values.get('carers'))
        if not carers_required or hours <= 0:
            return None

        return {'date': day, 'period': period, 'hours': hours, 'carers_required': True}

    def index_entries(self, entries: List[Dict[str, Any]]) -> Dict[Any, Dict[str, Decimal]]:
        """Surviving entries keyed by date then period; later entries overwrite earlier ones."""
        care_by_date = {}
        for entry in entries:
            parsed = self.parse_entry(entry)
            if parsed is None:
                continue
            day_care = care_by_date.setdefault(parsed['date'], empty_profile())
            day_care[parsed['period']] = parsed['hours']
        return care_by_date

    @staticmethod
    def resolve_default_profile(
        default_values: Optional[Dict[str, Any]],
        entries: List[Dict[str, Any]]
    ) -> Dict[str, Decimal]:
        """
        Default hours per period.

        Uses the explicit defaults block when any period carries a duration,
        otherwise the first raw entry seen for each period.
        """
        if has_default_care(default_values):
            return {period: _hours_from_default(default_values.get(period)) for period in PERIODS}

        derived = {}
        for entry in entries:
            period = str(entry.get('care') or '').strip().lower()
            if period not in PERIODS or period in derived:
                continue
            values = entry.get('values') or {}
            if not isinstance(values, dict) or not values.get('duration'):
                continue
            derived[period] = _hours_from_default(values)

        return {period: derived.get(period, ZERO) for period in PERIODS}

    # -------------------------------------------------
    # CHECK-IN / CHECK-OUT RULE
    # -------------------------------------------------

    @staticmethod
    def apply_boundary_rule(raw_care: Dict[str, Decimal], day: Dict[str, Any]) -> Dict[str, Decimal]:
        applicable = empty_profile()
        if day['is_check_in']:
            applicable['evening'] = raw_care.get('evening', ZERO)
        elif day['is_check_out']:
            applicable['morning'] = raw_care.get('morning', ZERO)
        else:
            for period in PERIODS:
                applicable[period] = raw_care.get(period, ZERO)
        return applicable
