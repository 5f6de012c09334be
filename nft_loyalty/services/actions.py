"""
Action payload variants.

Each partner action type has its own payload class carrying only the fields it
needs. parse_action() is the validation boundary: anything it returns is safe
to hand to the ActionProcessor, and anything it rejects raises
InvalidInputError before the store is touched.

Payload keys accept both camelCase (as sent by the partner webhooks) and
snake_case.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Union

from ..utils.exceptions import InvalidInputError, UnknownActionTypeError


# Points awarded when a caller-asserted action omits pointsEarned
DEFAULT_FLIGHT_POINTS = 100
DEFAULT_RESORT_VISIT_POINTS = 50
DEFAULT_HOTEL_BOOKING_POINTS = 150

# Storage limits: points is a 32-bit Integer, cumulative_spend is Numeric(20, 2)
MAX_POINTS = 2**31 - 1
MAX_AMOUNT = Decimal('999999999999999999.99')

_INTEGER_RE = re.compile(r'-?[0-9]+')


@dataclass(frozen=True)
class FlightBooking:
    """Airline booking. Points are stated by the airline; counts as one flight."""
    action_type = 'flight_booking'
    points_earned: int = DEFAULT_FLIGHT_POINTS
    booking_reference: Optional[str] = None


@dataclass(frozen=True)
class BankTransaction:
    """Card/bank spend. One point per 1,000 currency units."""
    action_type = 'bank_transaction'
    amount: Decimal = Decimal('0')


@dataclass(frozen=True)
class CardPurchase:
    """Consumer-finance purchase. One point per 10,000 currency units."""
    action_type = 'card_purchase'
    amount: Decimal = Decimal('0')


@dataclass(frozen=True)
class ResortVisit:
    action_type = 'resort_visit'
    points_earned: int = DEFAULT_RESORT_VISIT_POINTS


@dataclass(frozen=True)
class HotelBooking:
    action_type = 'hotel_booking'
    points_earned: int = DEFAULT_HOTEL_BOOKING_POINTS
    nights: Optional[int] = None


Action = Union[FlightBooking, BankTransaction, CardPurchase, ResortVisit, HotelBooking]


# ==================== Field validation ====================

def _get(payload: Dict[str, Any], *keys):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def non_negative_int(value, field: str) -> int:
    # bool is an int subclass; True is not "1 point"
    if isinstance(value, bool):
        raise InvalidInputError(f'{field} must be an integer', field)
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and _INTEGER_RE.fullmatch(value.strip()):
        result = int(value.strip())
    else:
        raise InvalidInputError(f'{field} must be an integer', field)
    if result < 0:
        raise InvalidInputError(f'{field} must not be negative', field)
    return result


def non_negative_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f'{field} must be a number', field)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f'{field} must be a number', field)
    if not result.is_finite():
        raise InvalidInputError(f'{field} must be a finite number', field)
    if result < 0:
        raise InvalidInputError(f'{field} must not be negative', field)
    return result


def _points(payload, default: int) -> int:
    value = _get(payload, 'pointsEarned', 'points_earned')
    if value is None:
        return default
    points = non_negative_int(value, 'points_earned')
    if points > MAX_POINTS:
        raise InvalidInputError(f'points_earned must not exceed {MAX_POINTS}', 'points_earned')
    return points


def _amount(payload) -> Decimal:
    value = _get(payload, 'amount')
    if value is None:
        raise InvalidInputError('amount is required', 'amount')
    amount = non_negative_decimal(value, 'amount')
    if amount > MAX_AMOUNT:
        raise InvalidInputError(f'amount must not exceed {MAX_AMOUNT}', 'amount')
    return amount


# ==================== Parsers ====================

def _parse_flight_booking(payload) -> FlightBooking:
    reference = _get(payload, 'bookingReference', 'booking_reference')
    return FlightBooking(
        points_earned=_points(payload, DEFAULT_FLIGHT_POINTS),
        booking_reference=str(reference) if reference is not None else None,
    )


def _parse_bank_transaction(payload) -> BankTransaction:
    return BankTransaction(amount=_amount(payload))


def _parse_card_purchase(payload) -> CardPurchase:
    return CardPurchase(amount=_amount(payload))


def _parse_resort_visit(payload) -> ResortVisit:
    return ResortVisit(points_earned=_points(payload, DEFAULT_RESORT_VISIT_POINTS))


def _parse_hotel_booking(payload) -> HotelBooking:
    nights = _get(payload, 'nights')
    return HotelBooking(
        points_earned=_points(payload, DEFAULT_HOTEL_BOOKING_POINTS),
        nights=non_negative_int(nights, 'nights') if nights is not None else None,
    )


ACTION_PARSERS = {
    FlightBooking.action_type: _parse_flight_booking,
    BankTransaction.action_type: _parse_bank_transaction,
    CardPurchase.action_type: _parse_card_purchase,
    ResortVisit.action_type: _parse_resort_visit,
    HotelBooking.action_type: _parse_hotel_booking,
}


def parse_action(action_type: str, payload: Dict[str, Any] = None) -> Action:
    """
    Validate a raw action event and build its payload variant.

    Args:
        action_type: Action type string (e.g. 'flight_booking')
        payload: Raw payload dict (may be None for defaults-only actions)

    Returns:
        Typed action payload

    Raises:
        UnknownActionTypeError: action_type is not recognised
        InvalidInputError: payload is not a dict or a field is invalid
    """
    parser = ACTION_PARSERS.get(action_type) if isinstance(action_type, str) else None
    if parser is None:
        raise UnknownActionTypeError(action_type, ACTION_PARSERS.keys())

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidInputError('payload must be an object', 'payload')

    return parser(payload)


def action_details(action: Action) -> Dict[str, Any]:
    """JSON-safe view of an action payload for the history table."""
    details = {}
    for name in action.__dataclass_fields__:
        value = getattr(action, name)
        if value is None:
            continue
        details[name] = str(value) if isinstance(value, Decimal) else value
    return details
