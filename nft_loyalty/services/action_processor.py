"""
Action Processor.

Turns a validated action into a point/metric delta and applies it through
AttributeStore.atomic_update. The level is recomputed inside the same update
from the post-update fields, so derived_level can never drift from what
evaluate_level() would return.

Point table:
    flight_booking     payload points (caller-asserted), +1 activity
    bank_transaction   amount // 1,000, adds amount to spend
    card_purchase      amount // 10,000, adds amount to spend
    resort_visit       payload points
    hotel_booking      payload points

Unknown action types are rejected; there is no zero-point fallback.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, List

from flask import current_app

from ..models.attributes import AttributeVector
from ..models.user_action import UserAction
from ..utils.exceptions import ConfigurationError, InvalidInputError
from .actions import (
    MAX_AMOUNT,
    MAX_POINTS,
    Action,
    FlightBooking,
    BankTransaction,
    CardPurchase,
    ResortVisit,
    HotelBooking,
    parse_action,
    action_details,
)
from .attribute_store import AttributeStore
from .level_rules import CategoricalTier, evaluate_level


@dataclass(frozen=True)
class ActionRule:
    """How one action type moves the attribute vector."""
    points_from_payload: bool = False
    points_denominator: int = None   # points = amount // denominator
    activity_bearing: bool = False
    spend_bearing: bool = False

    def points_for(self, action: Action) -> int:
        if self.points_from_payload:
            return action.points_earned
        if self.points_denominator:
            return int(action.amount // self.points_denominator)
        return 0

    def spend_for(self, action: Action) -> Decimal:
        if self.spend_bearing:
            return action.amount
        return Decimal('0')


ACTION_RULES = {
    FlightBooking.action_type: ActionRule(points_from_payload=True, activity_bearing=True),
    BankTransaction.action_type: ActionRule(points_denominator=1000, spend_bearing=True),
    CardPurchase.action_type: ActionRule(points_denominator=10000, spend_bearing=True),
    ResortVisit.action_type: ActionRule(points_from_payload=True),
    HotelBooking.action_type: ActionRule(points_from_payload=True),
}

TIER_UPDATE_ACTION = 'tier_update'


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an applied action."""
    user_id: str
    action_type: str
    points_earned: int
    previous_level: int
    new_level: int
    vector: AttributeVector

    @property
    def level_changed(self) -> bool:
        return self.new_level != self.previous_level

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'action_type': self.action_type,
            'points_earned': self.points_earned,
            'previous_level': self.previous_level,
            'new_level': self.new_level,
            'level_changed': self.level_changed,
            'attributes': self.vector.to_dict(),
        }


def recompute(vector: AttributeVector, now: datetime = None) -> AttributeVector:
    """Stamp a candidate vector with its evaluated level and timestamp."""
    return vector.evolve(
        derived_level=evaluate_level(vector),
        last_updated=now or datetime.utcnow(),
    )


class ActionProcessor:
    """
    Sole writer of attribute vectors.

    Usage:
        processor = ActionProcessor(store)
        result = processor.process(user_id, 'flight_booking', {'pointsEarned': 100})
    """

    def __init__(self, store: AttributeStore, rules: Dict[str, ActionRule] = None):
        self.store = store
        self.rules = rules if rules is not None else ACTION_RULES

    def _rule_for(self, action: Action) -> ActionRule:
        rule = self.rules.get(action.action_type)
        if rule is None:
            raise ConfigurationError(f"No point rule configured for action type '{action.action_type}'")
        return rule

    def process(self, user_id, action_type: str, payload: Dict[str, Any] = None) -> ActionResult:
        """
        Validate a raw action event and apply it.

        Raises:
            InvalidInputError: Unknown action type or invalid payload (nothing written)
        """
        action = parse_action(action_type, payload)
        return self.apply(user_id, action)

    def apply(self, user_id, action: Action) -> ActionResult:
        """
        Apply a validated action atomically.

        Args:
            user_id: User the action belongs to
            action: Typed payload from parse_action()

        Returns:
            ActionResult with points earned and level transition

        Raises:
            UserNotFoundError: User has no attribute vector
            TransientError: Storage conflict persisted past retries
            ConfigurationError: Action type missing from the point table
            InvalidInputError: Totals would overflow storage (nothing written)
        """
        rule = self._rule_for(action)
        points = rule.points_for(action)
        spend = rule.spend_for(action)
        details = action_details(action)
        if points > MAX_POINTS:
            raise InvalidInputError(f'Action would earn more than {MAX_POINTS} points', 'amount')

        def delta(current: AttributeVector) -> AttributeVector:
            total_points = current.points + points
            total_spend = current.cumulative_spend + spend
            if total_points > MAX_POINTS:
                raise InvalidInputError(f'Point balance would exceed {MAX_POINTS}', 'points_earned')
            if total_spend > MAX_AMOUNT:
                raise InvalidInputError(f'Cumulative spend would exceed {MAX_AMOUNT}', 'amount')
            return recompute(current.evolve(
                points=total_points,
                activity_count=current.activity_count + (1 if rule.activity_bearing else 0),
                cumulative_spend=total_spend,
            ))

        # before-snapshot of the attempt that committed
        seen = {}

        def record(before: AttributeVector, after: AttributeVector) -> List[UserAction]:
            seen['before'] = before
            return [UserAction(
                user_id=after.user_id,
                action_type=action.action_type,
                details=details,
                points_earned=points,
                previous_level=before.derived_level,
                new_level=after.derived_level,
            )]

        vector = self.store.atomic_update(user_id, delta, record=record)
        previous_level = seen['before'].derived_level

        result = ActionResult(
            user_id=vector.user_id,
            action_type=action.action_type,
            points_earned=points,
            previous_level=previous_level,
            new_level=vector.derived_level,
            vector=vector,
        )

        current_app.logger.info(
            f'Action applied: {vector.user_id} {action.action_type} +{points} pts '
            f'(level {previous_level} -> {vector.derived_level})'
        )
        if result.level_changed:
            current_app.logger.info(f'Level changed for {vector.user_id}: {previous_level} -> {vector.derived_level}')

        return result

    def set_categorical_tier(self, user_id, tier) -> ActionResult:
        """
        Apply an externally assigned categorical tier.

        Goes through the same atomic path so the level is recomputed.
        """
        tier = CategoricalTier.parse(tier)
        seen = {}

        def delta(current: AttributeVector) -> AttributeVector:
            return recompute(current.evolve(categorical_tier=tier))

        def record(before, after):
            seen['before'] = before
            return [UserAction(
                user_id=after.user_id,
                action_type=TIER_UPDATE_ACTION,
                details={'from': before.categorical_tier.value, 'to': tier.value},
                points_earned=0,
                previous_level=before.derived_level,
                new_level=after.derived_level,
            )]

        vector = self.store.atomic_update(user_id, delta, record=record)
        previous_level = seen['before'].derived_level

        current_app.logger.info(
            f'Categorical tier set: {vector.user_id} -> {tier.value} '
            f'(level {previous_level} -> {vector.derived_level})'
        )
        return ActionResult(
            user_id=vector.user_id,
            action_type=TIER_UPDATE_ACTION,
            points_earned=0,
            previous_level=previous_level,
            new_level=vector.derived_level,
            vector=vector,
        )

    def recompute_level(self, user_id) -> ActionResult:
        """Re-evaluate a stored vector without changing its inputs (drift repair)."""
        seen = {}

        def delta(current: AttributeVector) -> AttributeVector:
            seen['before'] = current
            if evaluate_level(current) == current.derived_level:
                return current
            return recompute(current)

        vector = self.store.atomic_update(user_id, delta)
        previous_level = seen['before'].derived_level
        return ActionResult(
            user_id=vector.user_id,
            action_type='recompute',
            points_earned=0,
            previous_level=previous_level,
            new_level=vector.derived_level,
            vector=vector,
        )
