"""
Care Source Resolver
====================
A booking's care answer can live in several places: an analysis computed
earlier, the raw answer passed in by the caller, the current summary, the
original booking, the in-progress form pages, or the persisted Q&A pairs.

Sources are tried strictly in priority order and the first usable one wins.
Each candidate is either a value or a zero-argument callable, so lower
priority lookups are never performed once a higher one succeeds.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from care_schedule import (
    CareScheduleNormalizer,
    PERIODS,
    ZERO,
    empty_profile,
    has_default_care,
    parse_json_field,
)

logger = logging.getLogger(__name__)


CARE_QUESTION_KEY = 'when-do-you-require-care'
COURSE_QUESTION_KEY = 'have-you-been-offered-a-place-in-a-course-for-this-stay'

DEFAULT_COURSE_DAY = 1


# =====================================================
# SHAPE CHECKS
# =====================================================

def is_raw_care_payload(data: Any) -> bool:
    """
    True for a non-empty entry list, or a dict holding one under careData /
    rawCareData, or a dict whose defaultValues give a duration for any period.
    """
    if isinstance(data, list):
        return len(data) > 0
    if not isinstance(data, dict):
        return False
    for key in ('careData', 'rawCareData'):
        entries = data.get(key)
        if isinstance(entries, list) and entries:
            return True
    return has_default_care(data.get('defaultValues'))


def is_processed_care_analysis(data: Any) -> bool:
    """True for a care analysis that requires care and carries daily details (either key style)."""
    if not isinstance(data, dict):
        return False
    requires_care = data.get('requires_care', data.get('requiresCare'))
    details = data.get('daily_care_details', data.get('dailyCareDetails'))
    return requires_care is True and isinstance(details, list) and len(details) > 0


def _to_hours(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        hours = Decimal(str(value))
    except InvalidOperation:
        return ZERO
    return hours if hours.is_finite() else ZERO


def _to_profile(value: Any) -> Dict[str, Decimal]:
    if not isinstance(value, dict):
        return empty_profile()
    return {period: _to_hours(value.get(period)) for period in PERIODS}


def _pick(data: Dict[str, Any], snake_key: str, camel_key: str, default: Any = None) -> Any:
    if snake_key in data:
        return data[snake_key]
    return data.get(camel_key, default)


def coerce_care_analysis(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rebuild a processed analysis in the snake_case shape used by the pricing
    engine, with Decimal hours.

    Analyses stored by the booking form use camelCase keys, and any analysis
    that went through JSON storage carries float hours.
    """
    details = []
    for day in _pick(data, 'daily_care_details', 'dailyCareDetails') or []:
        if not isinstance(day, dict):
            continue
        applicable = _to_profile(_pick(day, 'applicable_care', 'applicableCare'))
        details.append({
            'date': day.get('date'),
            'weekday_index': _pick(day, 'weekday_index', 'dayOfWeek'),
            'rate_type': _pick(day, 'rate_type', 'rateType'),
            'is_check_in': bool(_pick(day, 'is_check_in', 'isCheckIn')),
            'is_check_out': bool(_pick(day, 'is_check_out', 'isCheckOut')),
            'is_middle': bool(_pick(day, 'is_middle', 'isMiddleDay', day.get('isMiddle'))),
            'raw_care': _to_profile(_pick(day, 'raw_care', 'rawCare')),
            'applicable_care': applicable,
            'day_total_hours': sum(applicable.values(), ZERO),
        })

    return {
        'requires_care': bool(_pick(data, 'requires_care', 'requiresCare')),
        'total_hours_per_day': _to_hours(_pick(data, 'total_hours_per_day', 'totalHoursPerDay')),
        'total_care_hours': sum((d['day_total_hours'] for d in details), ZERO),
        'daily_care_details': details,
        'care_varies': bool(_pick(data, 'care_varies', 'careVaries')),
        'sample_day': _to_profile(_pick(data, 'sample_day', 'sampleDay')),
        'care_pattern': _pick(data, 'care_pattern', 'carePattern'),
        'recommended_packages': _pick(data, 'recommended_packages', 'recommendedPackages') or [],
        'analysis': data.get('analysis'),
        'raw_care_data': _pick(data, 'raw_care_data', 'rawCareData'),
    }


# =====================================================
# Q&A SCANNING
# =====================================================

def _question_key(item: Dict[str, Any]) -> Optional[str]:
    question = item.get('Question')
    if isinstance(question, dict) and question.get('question_key'):
        return question['question_key']
    return item.get('question_key') or item.get('questionKey')


def _qa_pairs(section: Dict[str, Any]) -> List[Dict[str, Any]]:
    pairs = section.get('QaPairs') or section.get('qaPairs') or section.get('qa_pairs') or []
    return [p for p in pairs if isinstance(p, dict)]


def _care_from_answer(answer: Any) -> Optional[Dict[str, Any]]:
    """Decode a care answer and keep it only if it carries entries or default hours."""
    if not answer:
        return None
    care = parse_json_field(answer)
    if isinstance(care, dict) and is_raw_care_payload(care):
        return care
    return None


def _booking_section_sources(booking: Dict[str, Any]) -> List[Any]:
    data = booking.get('data') if isinstance(booking.get('data'), dict) else {}
    return [
        booking.get('originalSections'),
        booking.get('Sections'),
        booking.get('sections'),
        data.get('sections'),
        data.get('originalSections'),
    ]


def find_answer_in_sections(sections: Iterable[Any], question_key: str) -> Any:
    """First answer for ``question_key`` among the sections' Q&A pairs, or None."""
    for section in sections:
        if not isinstance(section, dict):
            continue
        for pair in _qa_pairs(section):
            if _question_key(pair) == question_key:
                return pair.get('answer')
    return None


def extract_care_from_form_pages(form_pages: Any) -> Optional[Dict[str, Any]]:
    """Raw care answer from in-progress form pages (Questions first, then QaPairs)."""
    if not isinstance(form_pages, list):
        return None

    for page in form_pages:
        if not isinstance(page, dict) or not isinstance(page.get('Sections'), list):
            continue
        for section in page['Sections']:
            if not isinstance(section, dict):
                continue
            for question in section.get('Questions') or []:
                if isinstance(question, dict) and question.get('question_key') == CARE_QUESTION_KEY:
                    care = _care_from_answer(question.get('answer'))
                    if care:
                        return care
            for pair in _qa_pairs(section):
                if _question_key(pair) == CARE_QUESTION_KEY:
                    care = _care_from_answer(pair.get('answer'))
                    if care:
                        return care
    return None


def extract_care_from_booking(booking: Any) -> Optional[Dict[str, Any]]:
    """Raw care answer from the booking's persisted Q&A pairs, then top-level careData."""
    if not isinstance(booking, dict):
        return None

    for sections in _booking_section_sources(booking):
        if not isinstance(sections, list):
            continue
        for section in sections:
            if not isinstance(section, dict):
                continue
            for pair in _qa_pairs(section):
                if _question_key(pair) != CARE_QUESTION_KEY:
                    continue
                care = _care_from_answer(pair.get('answer'))
                if care:
                    return care

    for holder in (booking, booking.get('data')):
        if isinstance(holder, dict) and isinstance(holder.get('careData'), list):
            return {
                'careData': holder['careData'],
                'defaultValues': holder.get('defaultValues') or {},
                'careVaries': holder.get('careVaries') or False,
            }

    return None


def extract_course_analysis(booking: Any) -> Dict[str, Any]:
    """Whether the guest has been offered a course place during the stay."""
    if isinstance(booking, dict):
        for sections in _booking_section_sources(booking):
            if not isinstance(sections, list):
                continue
            for section in sections:
                if not isinstance(section, dict):
                    continue
                for pair in _qa_pairs(section):
                    if _question_key(pair) == COURSE_QUESTION_KEY:
                        answer = pair.get('answer')
                        has_course = isinstance(answer, str) and answer.strip().lower() == 'yes'
                        return {'has_course': has_course, 'course_day': DEFAULT_COURSE_DAY}

    return {'has_course': False, 'course_day': DEFAULT_COURSE_DAY}


def normalize_course_analysis(course: Any) -> Dict[str, Any]:
    """Course flag in snake_case form; accepts the camelCase ``hasCourse`` shape too."""
    if not isinstance(course, dict):
        return {'has_course': False, 'course_day': DEFAULT_COURSE_DAY}
    has_course = course.get('has_course', course.get('hasCourse'))
    course_day = course.get('course_day', course.get('courseDay', DEFAULT_COURSE_DAY))
    try:
        course_day = int(course_day)
    except (TypeError, ValueError):
        course_day = DEFAULT_COURSE_DAY
    return {'has_course': has_course is True, 'course_day': course_day}


def _has_course_flag(course: Any) -> bool:
    return isinstance(course, dict) and ('has_course' in course or 'hasCourse' in course)


def resolve_course_analysis(course_analysis: Any = None, summary: Any = None, booking: Any = None) -> Dict[str, Any]:
    """
    Course flag from the first source that carries one: the analysis passed
    in, then summary.data.courseAnalysis, then the booking's course answer.
    """
    course = parse_json_field(course_analysis)
    if not _has_course_flag(course) and isinstance(summary, dict) and isinstance(summary.get('data'), dict):
        course = parse_json_field(summary['data'].get('courseAnalysis'))
    if not _has_course_flag(course):
        course = extract_course_analysis(booking)
    return normalize_course_analysis(course)


# =====================================================
# CANDIDATE SOURCES
# =====================================================

def _nested_care_analysis(holder: Any) -> Any:
    if not isinstance(holder, dict):
        return None
    data = holder.get('data')
    if not isinstance(data, dict):
        return None
    return parse_json_field(data.get('careAnalysis'))


def _nested_raw_care(holder: Any) -> Any:
    analysis = _nested_care_analysis(holder)
    if not isinstance(analysis, dict):
        return None
    return parse_json_field(analysis.get('rawCareData'))


def build_care_sources(
    care_analysis: Any = None,
    raw_care: Any = None,
    summary: Any = None,
    booking: Any = None,
    form_pages: Any = None
) -> List[Callable[[], Any]]:
    """
    Candidate care sources, highest priority first:

      1. processed analysis passed in directly
      2. raw care answer passed in directly
      3. processed analysis in the current summary
      4. raw care answer in the current summary
      5. processed / raw analysis in the original booking
      6. care question in the in-progress form pages
      7. care question in the booking's persisted Q&A pairs
    """
    return [
        lambda: care_analysis,
        lambda: raw_care,
        lambda: _nested_care_analysis(summary),
        lambda: _nested_raw_care(summary),
        lambda: _nested_care_analysis(booking),
        lambda: _nested_raw_care(booking),
        lambda: extract_care_from_form_pages(form_pages),
        lambda: extract_care_from_booking(booking),
    ]


# =====================================================
# RESOLVER
# =====================================================

class CareSourceResolver:

    def __init__(self, normalizer: Optional[CareScheduleNormalizer] = None):
        self.normalizer = normalizer or CareScheduleNormalizer()

    def resolve(
        self,
        candidate_sources: Iterable[Any],
        dates_of_stay: Any,
        nights: Any,
        holidays: Optional[Iterable[Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Care analysis from the first usable candidate, or None.

        A candidate is usable when it is already a processed analysis, or a
        raw answer that normalizes into a non-empty schedule for the stay.
        """
        if not dates_of_stay or nights is None:
            return None

        for priority, source in enumerate(candidate_sources, start=1):
            try:
                data = source() if callable(source) else source
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Care source #{priority} failed, skipping: {e}")
                continue

            data = parse_json_field(data)
            if data is None:
                continue

            if is_processed_care_analysis(data):
                logger.info(f"Care analysis taken from source #{priority} (processed)")
                return coerce_care_analysis(data)

            if is_raw_care_payload(data):
                analysis = self.normalizer.normalize(data, dates_of_stay, nights, holidays)
                if analysis['daily_care_details']:
                    logger.info(f"Care analysis taken from source #{priority} (raw)")
                    return analysis

        logger.info("No care source yielded usable data")
        return None
