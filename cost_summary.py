"""
Stay Cost Aggregator
====================
Combines the priced package line items with the guest's room selection into
the final cost summary.

Out-of-pocket rules:
  - Holiday Support family: all selected rooms at their holiday support
    nightly price, for every night
  - NDIS STA with an ocean view primary room: ocean view room total plus
    additional rooms (no separate room upgrade charge)
  - everything else: primary room upgrade plus additional rooms

Holiday Support Plus is quoted manually, so its package total is not
charged and the grand total is the out-of-pocket amount only.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


CENT = Decimal('0.01')
ZERO = Decimal('0')

HOLIDAY_SUPPORT_CODES = {'HOLIDAY_SUPPORT', 'HOLIDAY_SUPPORT_PLUS'}
CUSTOM_QUOTE_CODES = {'HOLIDAY_SUPPORT_PLUS'}

STUDIO_ROOM_TYPE = 'studio'
OCEAN_VIEW_ROOM_TYPE = 'ocean_view'
STA_PACKAGE_TYPE = 'sta'


def to_money(value: Any) -> Decimal:
    """Parse a price into a Decimal; unparseable or missing values are 0."""
    if value is None or value == '' or isinstance(value, bool):
        return ZERO
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning(f"Unparseable price {value!r}, using 0")
        return ZERO
    return amount


def format_aud(amount: Any) -> str:
    """Format an amount as Australian dollars, e.g. $1,234.50"""
    value = to_money(amount).quantize(CENT, ROUND_HALF_UP)
    sign = '-' if value < 0 else ''
    return f"{sign}${abs(value):,.2f}"


def classify_package(name: Optional[str] = None, code: Optional[str] = None) -> Dict[str, bool]:
    """
    Package family flags from the package name and/or code.

    Returns:
        Dict with is_holiday_support (whole Holiday Support family) and
        is_custom_quote (Holiday Support Plus only)
    """
    name = name or ''
    code = (code or '').strip().upper()

    is_custom_quote = (
        code in CUSTOM_QUOTE_CODES
        or 'Holiday Support Plus' in name
        or 'Holiday Support+' in name
    )
    is_holiday_support = is_custom_quote or code in HOLIDAY_SUPPORT_CODES or 'Holiday Support' in name

    return {'is_holiday_support': is_holiday_support, 'is_custom_quote': is_custom_quote}


def is_ndis_funder(funder: Optional[str]) -> bool:
    return bool(funder) and ('NDIS' in funder or 'NDIA' in funder)


# =====================================================
# ROOM COST CALCULATOR
# =====================================================

class RoomCostCalculator:

    @staticmethod
    def select_rooms(rooms: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Drop studio rooms, unless studios are all the guest selected."""
        rooms = [r for r in (rooms or []) if isinstance(r, dict)]
        if any(r.get('type') != STUDIO_ROOM_TYPE for r in rooms):
            return [r for r in rooms if r.get('type') != STUDIO_ROOM_TYPE]
        return rooms

    @staticmethod
    def room_price(room: Dict[str, Any], is_holiday_support: bool = False) -> Decimal:
        """Nightly price of a room; holiday support packages use hsp_pricing when set."""
        if is_holiday_support and to_money(room.get('hsp_pricing')) > 0:
            return to_money(room.get('hsp_pricing'))
        price = to_money(room.get('price'))
        if price > 0:
            return price
        return to_money(room.get('price_per_night'))

    @staticmethod
    def calculate(
        rooms: Optional[List[Dict[str, Any]]],
        nights: int,
        is_holiday_support_package: bool = False
    ) -> Dict[str, Any]:
        """
        Room costs for the stay.

        Returns:
            Dict with room_upgrade / additional_room totals (and per-night
            figures), hsp_accommodation, hsp_room_breakdown and the primary
            room's type and total
        """
        nights = max(int(nights or 0), 0)
        costs = {
            'room_upgrade_per_night': ZERO,
            'room_upgrade': ZERO,
            'additional_room_per_night': ZERO,
            'additional_room': ZERO,
            'hsp_total_per_night': ZERO,
            'hsp_accommodation': ZERO,
            'hsp_room_breakdown': [],
            'primary_room_type': None,
            'primary_room_total': ZERO,
        }

        if is_holiday_support_package:
            rooms = [r for r in (rooms or []) if isinstance(r, dict)]
        else:
            rooms = RoomCostCalculator.select_rooms(rooms)
        if not rooms:
            return costs

        costs['primary_room_type'] = rooms[0].get('type')

        if is_holiday_support_package:
            for index, room in enumerate(rooms):
                price = RoomCostCalculator.room_price(room, True)
                costs['hsp_total_per_night'] += price
                costs['hsp_room_breakdown'].append({
                    'name': room.get('room') or room.get('name') or room.get('label') or f"Room {index + 1}",
                    'type': room.get('type'),
                    'price_per_night': price,
                    'is_main_room': index == 0,
                })
            costs['hsp_accommodation'] = costs['hsp_total_per_night'] * nights
            costs['primary_room_total'] = costs['hsp_room_breakdown'][0]['price_per_night'] * nights
            return costs

        costs['room_upgrade_per_night'] = RoomCostCalculator.room_price(rooms[0])
        costs['room_upgrade'] = costs['room_upgrade_per_night'] * nights
        costs['additional_room_per_night'] = sum(
            (RoomCostCalculator.room_price(r) for r in rooms[1:]), ZERO
        )
        costs['additional_room'] = costs['additional_room_per_night'] * nights
        costs['primary_room_total'] = costs['room_upgrade']
        return costs


# =====================================================
# COST AGGREGATOR
# =====================================================

class StayCostAggregator:

    @staticmethod
    def is_ocean_view_sta(funder: Optional[str], ndis_package_type: Optional[str], room_costs: Dict[str, Any]) -> bool:
        return (
            is_ndis_funder(funder)
            and (ndis_package_type or '').lower() == STA_PACKAGE_TYPE
            and room_costs.get('primary_room_type') == OCEAN_VIEW_ROOM_TYPE
        )

    @staticmethod
    def aggregate(
        priced_items: List[Dict[str, Any]],
        room_costs: Dict[str, Any],
        is_custom_quote_package: bool,
        is_holiday_support_package: bool = False,
        ocean_view_sta: bool = False
    ) -> Dict[str, Any]:
        """
        Final cost summary.

        Returns:
            Dict with package_total, out_of_pocket_total, grand_total,
            is_quote_only and the room figures that make up out-of-pocket
        """
        package_total = sum((to_money(item.get('total')) for item in priced_items or []), ZERO)
        if is_custom_quote_package:
            package_total = ZERO

        room_upgrade = to_money(room_costs.get('room_upgrade'))
        additional_room = to_money(room_costs.get('additional_room'))
        hsp_accommodation = to_money(room_costs.get('hsp_accommodation'))
        ocean_view_total = ZERO

        if is_holiday_support_package:
            out_of_pocket = hsp_accommodation
            room_upgrade = ZERO
            additional_room = ZERO
        elif ocean_view_sta:
            ocean_view_total = to_money(room_costs.get('primary_room_total'))
            room_upgrade = ZERO
            out_of_pocket = ocean_view_total + additional_room
        else:
            out_of_pocket = room_upgrade + additional_room

        package_total = package_total.quantize(CENT, ROUND_HALF_UP)
        out_of_pocket = out_of_pocket.quantize(CENT, ROUND_HALF_UP)

        if is_custom_quote_package:
            grand_total = out_of_pocket
        else:
            grand_total = package_total + out_of_pocket

        logger.info(
            f"Cost summary: package={package_total}, out_of_pocket={out_of_pocket}, "
            f"grand_total={grand_total}, quote_only={is_custom_quote_package}"
        )

        return {
            'package_total': package_total,
            'out_of_pocket_total': out_of_pocket,
            'grand_total': grand_total,
            'is_quote_only': bool(is_custom_quote_package),
            'room_upgrade_total': room_upgrade.quantize(CENT, ROUND_HALF_UP),
            'additional_room_total': additional_room.quantize(CENT, ROUND_HALF_UP),
            'ocean_view_total': ocean_view_total.quantize(CENT, ROUND_HALF_UP),
            'hsp_accommodation_total': hsp_accommodation.quantize(CENT, ROUND_HALF_UP),
        }
