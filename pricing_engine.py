"""
Stay Pricing Engine
===================
Core calculation logic for respite stay booking summaries:
  - Dynamic NDIS packages (line items from the package catalogue)
  - Static hourly rate tables (SP / CSP / HCSP)
  - Wellness packages (flat nightly rate)
  - Care-hours, group activity and course quantities
  - Stay summary orchestration (care -> line items -> cost summary)

Every pricing pass recomputes from the full input snapshot. Identical
inputs (including the holiday set) always produce identical output.

Rate selection:
  - weekday / saturday / sunday from the day of week
  - public_holiday when the day is a public holiday (wins over weekends)
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Any, Optional, Tuple
import logging

from care_schedule import PERIODS, ZERO, parse_json_field
from care_sources import (
    CareSourceResolver,
    build_care_sources,
    normalize_course_analysis,
    resolve_course_analysis,
)
from cost_summary import RoomCostCalculator, StayCostAggregator, classify_package, to_money
from errors import InvalidConfigurationError, PackageDefinitionError, PricingEngineError
from holiday_oracle import HolidayOracle
from stay_calendar import (
    RATE_PUBLIC_HOLIDAY,
    RATE_SATURDAY,
    RATE_SUNDAY,
    RATE_TYPES,
    RATE_WEEKDAY,
    StayCalendar,
    build_dates_of_stay,
    coerce_nights,
    normalize_holiday_dates,
    parse_stay_dates,
    stay_end_date,
)

logger = logging.getLogger(__name__)


CENT = Decimal('0.01')

COURSE_HOURS = Decimal('6')
PARTIAL_DAY_HOURS = Decimal('6')
FULL_DAY_HOURS = Decimal('12')
HOURS_PER_BILLED_DAY = Decimal('12')
STATIC_HOURS_PER_DAY = Decimal('24')

LINE_ITEM_ROOM = 'room'
LINE_ITEM_GROUP_ACTIVITIES = 'group_activities'
LINE_ITEM_SLEEP_OVER = 'sleep_over'
LINE_ITEM_COURSE = 'course'
LINE_ITEM_CARE = 'care'

RATE_CATEGORY_LABELS = {
    'hour': ('/hour', 'hrs'),
    'day': ('/day', 'days'),
    'night': ('/night', 'nights'),
}

HOLIDAY_PLUS_PACKAGE_TYPE = 'holiday-plus'


# =====================================================
# PACKAGE CATALOGUE
# =====================================================

STATIC_HOURLY_PRICING = {
    'SP': [
        {'description': "Assistance With Self-Care Activities in a STA - WEEKDAY", 'code': "01_200_0115_1_1", 'hourly_rate': '39.58', 'rate_type': RATE_WEEKDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SATURDAY", 'code': "01_202_0115_1_1", 'hourly_rate': '45.83', 'rate_type': RATE_SATURDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SUNDAY", 'code': "01_203_0115_1_1", 'hourly_rate': '52.08', 'rate_type': RATE_SUNDAY},
        {'description': "Assistance With Self-Care Activities in a STA - PUBLIC HOLIDAY", 'code': "01_204_0115_1_1", 'hourly_rate': '62.50', 'rate_type': RATE_PUBLIC_HOLIDAY},
    ],
    'CSP': [
        {'description': "Assistance With Self-Care Activities in a STA - WEEKDAY", 'code': "01_200_0115_1_1", 'hourly_rate': '45.83', 'rate_type': RATE_WEEKDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SATURDAY", 'code': "01_202_0115_1_1", 'hourly_rate': '58.33', 'rate_type': RATE_SATURDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SUNDAY", 'code': "01_203_0115_1_1", 'hourly_rate': '72.92', 'rate_type': RATE_SUNDAY},
        {'description': "Assistance With Self-Care Activities in a STA - PUBLIC HOLIDAY", 'code': "01_204_0115_1_1", 'hourly_rate': '83.33', 'rate_type': RATE_PUBLIC_HOLIDAY},
    ],
    'HCSP': [
        {'description': "Assistance With Self-Care Activities in a STA - WEEKDAY", 'code': "01_200_0115_1_1", 'hourly_rate': '72.50', 'rate_type': RATE_WEEKDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SATURDAY", 'code': "01_202_0115_1_1", 'hourly_rate': '77.08', 'rate_type': RATE_SATURDAY},
        {'description': "Assistance With Self-Care Activities in a STA - SUNDAY", 'code': "01_203_0115_1_1", 'hourly_rate': '83.33', 'rate_type': RATE_SUNDAY},
        {'description': "Assistance With Self-Care Activities in a STA - PUBLIC HOLIDAY", 'code': "01_204_0115_1_1", 'hourly_rate': '93.75', 'rate_type': RATE_PUBLIC_HOLIDAY},
    ],
}

STATIC_PACKAGE_ALIASES = {'NDIS_SP': 'SP', 'NDIS_CSP': 'CSP'}

WELLNESS_NIGHTLY_RATES = {
    'WS': Decimal('985'),
    'WHS': Decimal('1365'),
    'WVHS': Decimal('1740'),
}

# Matched in order; the longer names must come first.
PACKAGE_NAME_CODES = [
    ("Wellness & Very High Support Package", 'WVHS'),
    ("Wellness & High Support Package", 'WHS'),
    ("Wellness & Support", 'WS'),
    ("Wellness and Support", 'WS'),
    ("NDIS Support Package - No 1:1 assistance with self-care", 'SP'),
    ("NDIS Care Support Package - includes up to 6 hours of 1:1 assistance with self-care", 'CSP'),
    ("NDIS High Care Support Package - includes up to 12 hours of 1:1 assistance with self-care", 'HCSP'),
]


def serialize_package(answer: Optional[str]) -> str:
    """Package code for a package answer, e.g. 'Wellness & High Support Package' -> 'WHS'."""
    if not answer or not isinstance(answer, str):
        return ''
    for name, code in PACKAGE_NAME_CODES:
        if name in answer:
            return code
    return ''


def resolve_static_code(package_code: Optional[str]) -> Optional[str]:
    code = (package_code or '').strip().upper()
    code = STATIC_PACKAGE_ALIASES.get(code, code)
    return code if code in STATIC_HOURLY_PRICING else None


def is_wellness_code(package_code: Optional[str]) -> bool:
    return (package_code or '').strip().upper() in WELLNESS_NIGHTLY_RATES


# =====================================================
# LINE ITEM FIELDS
# =====================================================

def normalize_rate_type(rate_type: Any) -> Optional[str]:
    """Canonical rate type; blank / 'BLANK' mean "any day"."""
    if not rate_type or not isinstance(rate_type, str):
        return None
    value = rate_type.strip()
    if not value or value.upper() == 'BLANK':
        return None
    if value in ('publicHoliday', 'public-holiday', 'public holiday'):
        return RATE_PUBLIC_HOLIDAY
    return value.lower()


def _line_item_rate(line_item: Dict[str, Any]) -> Decimal:
    raw = line_item.get('price_per_night', line_item.get('price_per_unit'))
    if raw is None or raw == '':
        return ZERO
    try:
        rate = Decimal(str(raw))
    except InvalidOperation:
        rate = None
    if rate is None or not rate.is_finite():
        logger.warning(f"Line item {line_item.get('line_item')!r} has unparseable price {raw!r}, using 0")
        return ZERO
    return rate


def _line_item_code(line_item: Dict[str, Any]) -> str:
    return line_item.get('line_item') or line_item.get('line_item_code') or line_item.get('code') or 'N/A'


def _line_item_description(line_item: Dict[str, Any]) -> str:
    return line_item.get('sta_package') or line_item.get('description') or 'Package Item'


def _rate_category_labels(rate_category: Optional[str]) -> Tuple[str, str]:
    return RATE_CATEGORY_LABELS.get(rate_category or '', RATE_CATEGORY_LABELS['night'])


# =====================================================
# QUANTITY CALCULATOR
# =====================================================

class LineItemQuantityCalculator:
    """Quantity rules per line item type."""

    @staticmethod
    def care_quantity(line_item: Dict[str, Any], care_analysis: Optional[Dict[str, Any]]) -> Decimal:
        """
        Care hours billable under a care line item.

        care_time selects the period: blank = all periods, 'daytime' =
        afternoon, otherwise the named period. rate_type restricts the days.
        """
        if not care_analysis or not care_analysis.get('requires_care'):
            return ZERO

        rate_type = normalize_rate_type(line_item.get('rate_type'))
        care_time = str(line_item.get('care_time') or '').strip().lower()

        if not care_time:
            periods = PERIODS
        elif 'daytime' in care_time:
            periods = ('afternoon',)
        elif care_time in PERIODS:
            periods = (care_time,)
        else:
            periods = ()

        total = ZERO
        for day in care_analysis.get('daily_care_details') or []:
            if rate_type and day.get('rate_type') != rate_type:
                continue
            applicable = day.get('applicable_care') or {}
            for period in periods:
                total += applicable.get(period, ZERO) or ZERO
        return total

    @staticmethod
    def group_activities_quantity(
        line_item: Dict[str, Any],
        stay_days: List[Dict[str, Any]],
        course_analysis: Dict[str, Any]
    ) -> Decimal:
        """
        Group activity hours: 6 on arrival / departure days, 6 on the course
        day when a course is booked, 12 on every other day.
        """
        rate_type = normalize_rate_type(line_item.get('rate_type'))
        has_course = course_analysis.get('has_course') is True
        course_day = course_analysis.get('course_day', 1)

        total = ZERO
        for index, day in enumerate(stay_days):
            if rate_type and day['rate_type'] != rate_type:
                continue
            if day['is_check_in'] or day['is_check_out']:
                total += PARTIAL_DAY_HOURS
            elif has_course and index == course_day:
                total += PARTIAL_DAY_HOURS
            else:
                total += FULL_DAY_HOURS
        return total

    @staticmethod
    def quantity(
        line_item: Dict[str, Any],
        stay_days: List[Dict[str, Any]],
        nights_breakdown: Dict[str, int],
        care_analysis: Optional[Dict[str, Any]],
        course_analysis: Dict[str, Any]
    ) -> Decimal:
        line_item_type = line_item.get('line_item_type')
        nights = Decimal(max(len(stay_days) - 1, 0))

        if line_item_type in (LINE_ITEM_ROOM, LINE_ITEM_SLEEP_OVER):
            return nights

        if line_item_type == LINE_ITEM_COURSE:
            return COURSE_HOURS if course_analysis.get('has_course') is True else ZERO

        if line_item_type == LINE_ITEM_CARE:
            return LineItemQuantityCalculator.care_quantity(line_item, care_analysis)

        if line_item_type == LINE_ITEM_GROUP_ACTIVITIES:
            return LineItemQuantityCalculator.group_activities_quantity(line_item, stay_days, course_analysis)

        rate_category = line_item.get('rate_category')
        days = Decimal(StayCalendar.nights_for_rate_type(
            normalize_rate_type(line_item.get('rate_type')), nights_breakdown
        ))
        if rate_category == 'day':
            return days
        if rate_category == 'hour':
            return days * HOURS_PER_BILLED_DAY
        return ZERO


# =====================================================
# PACKAGE PRICING ENGINE
# =====================================================

class PackagePricingEngine:
    """
    Prices a package against a stay.

    Dynamic packages carry their own NDIS line items; static packages use
    the fixed hourly tables; wellness packages are a flat nightly rate.
    """

    def __init__(self):
        self.quantity_calculator = LineItemQuantityCalculator()

    # -------------------------------------------------
    # DYNAMIC (LINE ITEM) PACKAGES
    # -------------------------------------------------

    def price(
        self,
        line_items: List[Dict[str, Any]],
        stay_days: List[Dict[str, Any]],
        care_analysis: Optional[Dict[str, Any]],
        course_analysis: Optional[Dict[str, Any]],
        is_custom_quote_package: bool,
        is_holiday_support_package: bool = False,
        package_type: str = ''
    ) -> List[Dict[str, Any]]:
        """
        Price each line item for the stay.

        Args:
            line_items: package catalogue line items
            stay_days: day descriptors from StayCalendar.generate_stay_dates
            care_analysis: normalized care analysis (None = no care)
            course_analysis: {'has_course': bool, 'course_day': int}
            is_custom_quote_package: room items are dropped (quoted manually)
            is_holiday_support_package: room items are dropped (charged as accommodation)
            package_type: package's ndis_package_type, drives funding labels

        Returns:
            Priced rows with quantity > 0, in line item order
        """
        course_analysis = normalize_course_analysis(course_analysis)
        breakdown = StayCalendar.nights_breakdown(stay_days)
        has_course = course_analysis['has_course']

        rows = []
        for line_item in line_items or []:
            if not isinstance(line_item, dict):
                continue
            line_item_type = line_item.get('line_item_type')

            if line_item_type == LINE_ITEM_ROOM and (is_custom_quote_package or is_holiday_support_package):
                continue
            if line_item_type == LINE_ITEM_COURSE and not has_course:
                continue

            quantity = self.quantity_calculator.quantity(
                line_item, stay_days, breakdown, care_analysis, course_analysis
            )
            if quantity <= 0:
                continue

            rows.append(self._build_row(
                line_item, quantity, self._funding_label(line_item_type, package_type)
            ))

        logger.info(f"Priced {len(rows)} of {len(line_items or [])} line item(s)")
        return rows

    @staticmethod
    def _funding_label(line_item_type: Optional[str], package_type: str) -> str:
        if package_type != HOLIDAY_PLUS_PACKAGE_TYPE:
            return ''
        return 'Self/Foundation' if line_item_type == LINE_ITEM_ROOM else 'NDIS'

    @staticmethod
    def _build_row(line_item: Dict[str, Any], quantity: Decimal, funding_label: str) -> Dict[str, Any]:
        rate = _line_item_rate(line_item)
        rate_category = line_item.get('rate_category') or 'day'
        rate_label, unit_label = _rate_category_labels(rate_category)
        return {
            'description': _line_item_description(line_item),
            'code': _line_item_code(line_item),
            'rate': rate,
            'quantity': quantity,
            'total': (rate * quantity).quantize(CENT, ROUND_HALF_UP),
            'rate_category': rate_category,
            'rate_category_label': rate_label,
            'unit_label': unit_label,
            'funding_label': funding_label,
            'line_item_type': line_item.get('line_item_type') or '',
            'rate_type': normalize_rate_type(line_item.get('rate_type')),
        }

    # -------------------------------------------------
    # STATIC HOURLY PACKAGES
    # -------------------------------------------------

    def price_static(self, package_code: str, stay_days: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Price a static package: 24 billable hours per night at the hourly
        rate for that night's rate type. Rate types with no nights are dropped.
        """
        code = resolve_static_code(package_code)
        if code is None:
            logger.info(f"No static pricing table for package {package_code!r}")
            return []

        breakdown = StayCalendar.nights_breakdown(stay_days)
        rows = []
        for entry in STATIC_HOURLY_PRICING[code]:
            nights = breakdown.get(entry['rate_type'], 0)
            if nights <= 0:
                continue
            rate = Decimal(entry['hourly_rate'])
            hours = Decimal(nights) * STATIC_HOURS_PER_DAY
            rows.append({
                'description': entry['description'],
                'code': entry['code'],
                'rate': rate,
                'quantity': hours,
                'total': (rate * hours).quantize(CENT, ROUND_HALF_UP),
                'rate_category': 'hour',
                'rate_category_label': '/hour',
                'unit_label': 'hrs',
                'funding_label': '',
                'line_item_type': 'static',
                'rate_type': entry['rate_type'],
            })
        return rows

    # -------------------------------------------------
    # WELLNESS PACKAGES
    # -------------------------------------------------

    @staticmethod
    def _wellness_nightly_rate(package_code: str, package_cost: Any) -> Decimal:
        code = (package_code or '').strip().upper()
        if code not in WELLNESS_NIGHTLY_RATES:
            raise PackageDefinitionError(f"Unknown wellness package: {package_code!r}")

        explicit = to_money(package_cost)
        return explicit if explicit > 0 else WELLNESS_NIGHTLY_RATES[code]

    def price_wellness(self, package_code: str, nights: Any, package_cost: Any = None) -> List[Dict[str, Any]]:
        """Flat nightly wellness rate; an explicit package_cost overrides the catalogue rate."""
        try:
            rate = self._wellness_nightly_rate(package_code, package_cost)
        except PackageDefinitionError as e:
            logger.warning(f"Wellness pricing skipped: {e}")
            return []

        quantity = Decimal(coerce_nights(nights) or 0)
        if quantity <= 0:
            return []

        return [{
            'description': f"Wellness Package - {quantity} nights",
            'code': 'WELLNESS',
            'rate': rate,
            'quantity': quantity,
            'total': (rate * quantity).quantize(CENT, ROUND_HALF_UP),
            'rate_category': 'night',
            'rate_category_label': '/night',
            'unit_label': 'nights',
            'funding_label': '',
            'line_item_type': 'accommodation',
            'rate_type': None,
        }]


# =====================================================
# MAIN ENGINE
# =====================================================

class StaySummaryEngine:
    """
    Builds the full stay summary for a booking.

    Data flow:
      raw answers -> CareSourceResolver -> care analysis
      -> PackagePricingEngine -> line items
      -> RoomCostCalculator + StayCostAggregator -> cost summary

    Holidays come from payload['holidays'] when supplied, otherwise from
    the injected oracle (one lookup per call for the stay's range).
    """

    def __init__(
        self,
        holiday_oracle: Optional[HolidayOracle] = None,
        care_resolver: Optional[CareSourceResolver] = None,
        pricing_engine: Optional[PackagePricingEngine] = None
    ):
        self.holiday_oracle = holiday_oracle
        self.care_resolver = care_resolver or CareSourceResolver()
        self.pricing_engine = pricing_engine or PackagePricingEngine()

    # -------------------------------------------------
    # MAIN ENTRY POINT
    # -------------------------------------------------

    def calculate_stay_summary(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Main calculation.

        Payload keys:
            dates_of_stay / check_in + check_out, nights
            package: definition dict (ndis_line_items, package_code, name,
                ndis_package_type) or its JSON string
            package_type: static or wellness package code
            package_cost: explicit wellness nightly rate
            rooms: selected rooms (type, price / price_per_night, hsp_pricing)
            funder, ndis_package_type: funding details ('sta' enables the
                ocean view rule)
            holidays: precomputed holiday list
            care_analysis, raw_care, summary, booking, form_pages: care sources
            course_analysis: {'has_course': bool}

        Returns:
            Dict with stay details, care_analysis, course_analysis,
            line_items, room_costs and cost_summary. Never raises.
        """
        try:
            dates_of_stay, nights = self._resolve_stay(payload)
        except InvalidConfigurationError as e:
            logger.warning(f"Stay summary skipped: {e}")
            return self._empty_summary()

        holiday_set = self._resolve_holidays(payload, dates_of_stay, nights)
        stay_days = StayCalendar.generate_stay_dates(dates_of_stay, nights, holiday_set)

        care_sources = build_care_sources(
            care_analysis=payload.get('care_analysis'),
            raw_care=payload.get('raw_care'),
            summary=payload.get('summary'),
            booking=payload.get('booking'),
            form_pages=payload.get('form_pages'),
        )
        care_analysis = self.care_resolver.resolve(care_sources, dates_of_stay, nights, holiday_set)

        course_analysis = resolve_course_analysis(
            payload.get('course_analysis'), payload.get('summary'), payload.get('booking')
        )

        package = parse_json_field(payload.get('package'))
        if not isinstance(package, dict):
            package = {}
        flags = classify_package(
            package.get('name') or payload.get('package_name'),
            package.get('package_code') or payload.get('package_code'),
        )

        try:
            pricing_mode, line_items = self._price_package(
                payload, package, flags, stay_days, nights, care_analysis, course_analysis
            )
        except PricingEngineError as e:
            logger.warning(f"Package pricing failed, showing empty table: {e}")
            pricing_mode, line_items = 'none', []

        rooms = parse_json_field(payload.get('rooms'))
        room_costs = RoomCostCalculator.calculate(
            rooms if isinstance(rooms, list) else [], nights, flags['is_holiday_support']
        )
        ocean_view_sta = StayCostAggregator.is_ocean_view_sta(
            payload.get('funder') or package.get('funder'),
            payload.get('ndis_package_type'),
            room_costs,
        )
        cost_summary = StayCostAggregator.aggregate(
            line_items,
            room_costs,
            flags['is_custom_quote'],
            is_holiday_support_package=flags['is_holiday_support'],
            ocean_view_sta=ocean_view_sta,
        )

        return {
            'dates_of_stay': dates_of_stay,
            'nights': nights,
            'holidays': sorted(d.isoformat() for d in holiday_set),
            'stay_days': stay_days,
            'nights_breakdown': StayCalendar.nights_breakdown(stay_days),
            'care_analysis': care_analysis,
            'course_analysis': course_analysis,
            'package_flags': flags,
            'pricing_mode': pricing_mode,
            'line_items': line_items,
            'room_costs': room_costs,
            'cost_summary': cost_summary,
        }

    # -------------------------------------------------
    # STAY / HOLIDAYS
    # -------------------------------------------------

    def _resolve_stay(self, payload: Dict[str, Any]) -> Tuple[str, int]:
        if not isinstance(payload, dict):
            raise InvalidConfigurationError("Payload must be a dict")

        dates_of_stay = payload.get('dates_of_stay')
        derived_nights = None
        if not dates_of_stay and payload.get('check_in') and payload.get('check_out'):
            dates_of_stay, derived_nights = build_dates_of_stay(payload['check_in'], payload['check_out'])

        if not dates_of_stay:
            raise InvalidConfigurationError("Missing stay dates")

        start, end = parse_stay_dates(dates_of_stay)
        if start is None:
            raise InvalidConfigurationError(f"Unparseable stay dates: {dates_of_stay!r}")

        nights = coerce_nights(payload.get('nights'))
        if nights is None:
            nights = derived_nights
        if nights is None and end is not None and end >= start:
            nights = (end - start).days
        if nights is None:
            raise InvalidConfigurationError(f"Missing night count for stay {dates_of_stay!r}")
        if stay_end_date(start, nights) is None:
            raise InvalidConfigurationError(f"Stay {dates_of_stay!r} with {nights} night(s) is out of range")

        return dates_of_stay, nights

    def _resolve_holidays(self, payload: Dict[str, Any], dates_of_stay: str, nights: int):
        if payload.get('holidays') is not None:
            return normalize_holiday_dates(payload['holidays'])
        if self.holiday_oracle is None:
            return frozenset()

        start, _ = parse_stay_dates(dates_of_stay)
        return self.holiday_oracle.holiday_dates(start, stay_end_date(start, nights))

    # -------------------------------------------------
    # PACKAGE
    # -------------------------------------------------

    def _price_package(
        self,
        payload: Dict[str, Any],
        package: Dict[str, Any],
        flags: Dict[str, bool],
        stay_days: List[Dict[str, Any]],
        nights: int,
        care_analysis: Optional[Dict[str, Any]],
        course_analysis: Dict[str, Any]
    ) -> Tuple[str, List[Dict[str, Any]]]:
        line_items = parse_json_field(package.get('ndis_line_items'))
        if isinstance(line_items, list) and line_items:
            return 'dynamic', self.pricing_engine.price(
                line_items,
                stay_days,
                care_analysis,
                course_analysis,
                flags['is_custom_quote'],
                is_holiday_support_package=flags['is_holiday_support'],
                package_type=package.get('ndis_package_type') or '',
            )

        package_code = (
            payload.get('package_type')
            or package.get('package_code')
            or serialize_package(package.get('name') or payload.get('package_name'))
        )

        if resolve_static_code(package_code):
            return 'static', self.pricing_engine.price_static(package_code, stay_days)

        if is_wellness_code(package_code):
            return 'wellness', self.pricing_engine.price_wellness(
                package_code, nights, payload.get('package_cost')
            )

        logger.info(f"No pricing available for package {package_code!r}; pricing to be confirmed")
        return 'none', []

    @staticmethod
    def _empty_summary() -> Dict[str, Any]:
        empty_costs = RoomCostCalculator.calculate([], 0)
        return {
            'dates_of_stay': None,
            'nights': 0,
            'holidays': [],
            'stay_days': [],
            'nights_breakdown': {rate_type: 0 for rate_type in RATE_TYPES},
            'care_analysis': None,
            'course_analysis': normalize_course_analysis(None),
            'package_flags': classify_package(),
            'pricing_mode': 'none',
            'line_items': [],
            'room_costs': empty_costs,
            'cost_summary': StayCostAggregator.aggregate([], empty_costs, False),
        }
