"""
Public Holiday Oracle
=====================
Supplies the public holidays that fall inside a stay so days can be priced
at the public holiday rate.

Two implementations:
  - StaticHolidayOracle: a precomputed holiday list supplied by the caller
  - NagerHolidayOracle: live lookup against the Nager.Date public holiday API

A failed lookup never blocks pricing: holiday_dates() logs the failure and
returns an empty set, so days fall back to weekday / weekend rates.

Configuration (environment, read at call time):
  HOLIDAY_API_BASE_URL       default https://date.nager.at/api/v3
  HOLIDAY_COUNTRY_CODE       default AU
  HOLIDAY_REGION_CODE        default AU-NSW
  HOLIDAY_API_TIMEOUT        default 5 (seconds)
  HOLIDAY_CACHE_TTL_SECONDS  default 86400
"""

from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Optional
import logging
import os
import time

import requests

from errors import HolidayLookupError
from stay_calendar import normalize_holiday_dates, parse_date

logger = logging.getLogger(__name__)


DEFAULT_HOLIDAY_API_BASE_URL = 'https://date.nager.at/api/v3'
DEFAULT_COUNTRY_CODE = 'AU'
DEFAULT_REGION_CODE = 'AU-NSW'
DEFAULT_TIMEOUT_SECONDS = 5
DEFAULT_CACHE_TTL_SECONDS = 86400


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _get_holiday_api_base_url() -> str:
    return os.environ.get('HOLIDAY_API_BASE_URL', '').strip().rstrip('/') or DEFAULT_HOLIDAY_API_BASE_URL


def _get_country_code() -> str:
    return os.environ.get('HOLIDAY_COUNTRY_CODE', '').strip() or DEFAULT_COUNTRY_CODE


def _get_region_code() -> str:
    return os.environ.get('HOLIDAY_REGION_CODE', '').strip() or DEFAULT_REGION_CODE


# =====================================================
# BASE
# =====================================================

class HolidayOracle:
    """Looks up public holidays for a date range."""

    def holidays_between(self, start: date, end: date) -> List[Dict[str, Any]]:
        """
        Holidays with start <= date <= end.

        Returns dicts with keys: date (ISO string), name, local_name, types.

        Raises:
            HolidayLookupError: if the lookup cannot be completed
        """
        raise NotImplementedError

    def holiday_dates(self, start: Optional[date], end: Optional[date]) -> FrozenSet[date]:
        """Holiday dates in range; any lookup failure yields an empty set."""
        if start is None or end is None or end < start:
            return frozenset()
        try:
            return normalize_holiday_dates(self.holidays_between(start, end))
        except HolidayLookupError as e:
            logger.warning(f"Holiday lookup failed for {start}..{end}, pricing without holidays: {e}")
            return frozenset()


# =====================================================
# STATIC
# =====================================================

class StaticHolidayOracle(HolidayOracle):
    """Holidays supplied up front by the caller (dates, date strings or holiday dicts)."""

    def __init__(self, holidays: Optional[Iterable[Any]] = None):
        self.holidays = []
        for holiday in holidays or []:
            raw = holiday.get('date') if isinstance(holiday, dict) else holiday
            parsed = parse_date(raw)
            if parsed is None:
                logger.debug(f"StaticHolidayOracle: skipping {holiday!r}")
                continue
            name = holiday.get('name', '') if isinstance(holiday, dict) else ''
            self.holidays.append({
                'date': parsed.isoformat(),
                'name': name,
                'local_name': name,
                'types': None,
            })

    def holidays_between(self, start: date, end: date) -> List[Dict[str, Any]]:
        return [
            h for h in self.holidays
            if start.isoformat() <= h['date'] <= end.isoformat()
        ]


# =====================================================
# NAGER.DATE API
# =====================================================

class NagerHolidayOracle(HolidayOracle):
    """
    Public holidays from the Nager.Date API, filtered to one region.

    Results are cached per year in memory. Concurrent misses may fetch the
    same year twice, which is harmless (last write wins).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        country_code: Optional[str] = None,
        region_code: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_ttl_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url
        self.country_code = country_code
        self.region_code = region_code
        self.timeout = timeout
        self.cache_ttl_seconds = cache_ttl_seconds
        self._owns_session = session is None
        self.session = session or requests.Session()
        self._year_cache = {}

    def close(self) -> None:
        """Close the HTTP session if this oracle created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> 'NagerHolidayOracle':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # -------------------------------------------------
    # CONFIG
    # -------------------------------------------------

    def _base_url(self) -> str:
        return (self.base_url or _get_holiday_api_base_url()).rstrip('/')

    def _country(self) -> str:
        return self.country_code or _get_country_code()

    def _region(self) -> str:
        return self.region_code or _get_region_code()

    def _timeout(self) -> float:
        if self.timeout is not None:
            return self.timeout
        return _env_float('HOLIDAY_API_TIMEOUT', DEFAULT_TIMEOUT_SECONDS)

    def _cache_ttl(self) -> float:
        if self.cache_ttl_seconds is not None:
            return self.cache_ttl_seconds
        return _env_float('HOLIDAY_CACHE_TTL_SECONDS', DEFAULT_CACHE_TTL_SECONDS)

    # -------------------------------------------------
    # LOOKUP
    # -------------------------------------------------

    def holidays_between(self, start: date, end: date) -> List[Dict[str, Any]]:
        holidays = []
        for year in range(start.year, end.year + 1):
            for holiday in self._holidays_for_year(year):
                if start.isoformat() <= holiday['date'] <= end.isoformat():
                    holidays.append(holiday)

        logger.info(f"Holidays {start}..{end} ({self._region()}): {len(holidays)} found")
        return holidays

    def _holidays_for_year(self, year: int) -> List[Dict[str, Any]]:
        now = time.time()
        cached = self._year_cache.get(year)
        if cached and now < cached['expires_at']:
            logger.debug(f"Holiday cache hit: {year}")
            return cached['holidays']

        holidays = self._fetch_year(year)
        self._year_cache[year] = {
            'holidays': holidays,
            'expires_at': now + self._cache_ttl(),
        }
        return holidays

    def _fetch_year(self, year: int) -> List[Dict[str, Any]]:
        """
        Fetch and region-filter one year of holidays.

        Raises:
            HolidayLookupError: on network errors, non-2xx responses or a
                malformed payload
        """
        url = f"{self._base_url()}/PublicHolidays/{year}/{self._country()}"
        region = self._region()

        try:
            resp = self.session.get(url, timeout=self._timeout())
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout:
            raise HolidayLookupError(f"timed out fetching {url}")
        except requests.exceptions.RequestException as e:
            raise HolidayLookupError(f"request to {url} failed: {e}")
        except ValueError as e:
            raise HolidayLookupError(f"invalid JSON from {url}: {e}")

        if not isinstance(data, list):
            raise HolidayLookupError(f"unexpected payload from {url}: {type(data).__name__}")

        holidays = []
        for item in data:
            if not isinstance(item, dict):
                continue
            counties = item.get('counties')
            if counties is not None and region not in counties:
                continue
            parsed = parse_date(item.get('date'))
            if parsed is None:
                continue
            holidays.append({
                'date': parsed.isoformat(),
                'name': item.get('name', ''),
                'local_name': item.get('localName'),
                'types': item.get('types'),
            })

        logger.info(f"Fetched {len(holidays)} {region} holiday(s) for {year}")
        return holidays
