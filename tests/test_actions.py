"""
Tests for action payload parsing.

parse_action() is the validation boundary: unknown types and bad fields are
rejected before anything touches the store.
"""
from decimal import Decimal

import pytest

from nft_loyalty.services.actions import (
    MAX_AMOUNT,
    MAX_POINTS,
    BankTransaction,
    CardPurchase,
    FlightBooking,
    HotelBooking,
    ResortVisit,
    action_details,
    parse_action,
)
from nft_loyalty.utils.exceptions import InvalidInputError, UnknownActionTypeError


class TestParseAction:
    """Tests for parse_action()."""

    def test_flight_booking_camel_case(self):
        action = parse_action('flight_booking', {'pointsEarned': 250, 'bookingReference': 'VJ123'})
        assert action == FlightBooking(points_earned=250, booking_reference='VJ123')

    def test_flight_booking_snake_case(self):
        action = parse_action('flight_booking', {'points_earned': 80})
        assert action.points_earned == 80

    def test_flight_booking_default_points(self):
        assert parse_action('flight_booking', {}).points_earned == 100

    def test_none_payload_uses_defaults(self):
        assert parse_action('resort_visit', None) == ResortVisit(points_earned=50)

    def test_hotel_booking(self):
        action = parse_action('hotel_booking', {'nights': 3})
        assert action == HotelBooking(points_earned=150, nights=3)

    def test_bank_transaction_amount(self):
        action = parse_action('bank_transaction', {'amount': 2500000})
        assert isinstance(action, BankTransaction)
        assert action.amount == Decimal('2500000')

    def test_card_purchase_string_amount(self):
        action = parse_action('card_purchase', {'amount': '123456.50'})
        assert isinstance(action, CardPurchase)
        assert action.amount == Decimal('123456.50')

    def test_unknown_action_type(self):
        with pytest.raises(UnknownActionTypeError) as exc_info:
            parse_action('teleportation', {})
        assert exc_info.value.kind == 'invalid_input'
        assert 'teleportation' in exc_info.value.message

    def test_non_string_action_type(self):
        with pytest.raises(InvalidInputError):
            parse_action(None, {})

    def test_payload_must_be_object(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_action('flight_booking', [1, 2])
        assert exc_info.value.field == 'payload'

    def test_amount_required(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_action('bank_transaction', {})
        assert exc_info.value.field == 'amount'

    @pytest.mark.parametrize('amount', [-1, '-5', 'abc', 'NaN', 'Infinity', True, '1e30', 10**30])
    def test_invalid_amounts(self, amount):
        with pytest.raises(InvalidInputError):
            parse_action('bank_transaction', {'amount': amount})

    def test_amount_at_storage_limit(self):
        assert parse_action('card_purchase', {'amount': str(MAX_AMOUNT)}).amount == MAX_AMOUNT

    @pytest.mark.parametrize('points', [-10, 1.5, 'ten', True, [100], '--5', '²', '1e30', 10**30, str(MAX_POINTS + 1)])
    def test_invalid_points(self, points):
        with pytest.raises(InvalidInputError):
            parse_action('flight_booking', {'pointsEarned': points})

    def test_points_as_numeric_string(self):
        assert parse_action('hotel_booking', {'pointsEarned': ' 300 '}).points_earned == 300
        assert parse_action('hotel_booking', {'pointsEarned': MAX_POINTS}).points_earned == MAX_POINTS


class TestActionDetails:
    """Tests for action_details()."""

    def test_decimal_serialized_as_string(self):
        details = action_details(BankTransaction(amount=Decimal('1500.25')))
        assert details == {'amount': '1500.25'}

    def test_none_fields_omitted(self):
        details = action_details(FlightBooking(points_earned=100))
        assert details == {'points_earned': 100}
