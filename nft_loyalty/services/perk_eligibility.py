"""
Perk Eligibility Evaluator.

Unlock conditions are stored as JSON on the perk row:

    {"type": "min_points", "threshold": 500}
    {"type": "min_categorical_tier", "tier": "Gold"}
    {"type": "min_activity_count", "threshold": 5}
    {"type": "min_cumulative_spend", "threshold": "50000000"}
    {"type": "min_level", "level": 3}
    {"type": "combined", "conditions": [{...}, {...}]}

combined is always conjunctive. parse_condition() is strict and raises on
malformed input; evaluate_perk() is total and treats any malformed or missing
condition as locked so a perk listing never partially fails.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from ..utils.exceptions import InvalidInputError
from .actions import non_negative_decimal, non_negative_int
from .level_rules import CategoricalTier, MAX_LEVEL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MinPoints:
    threshold: int

    def holds(self, vector) -> bool:
        return vector.points >= self.threshold


@dataclass(frozen=True)
class MinCategoricalTier:
    tier: CategoricalTier

    def holds(self, vector) -> bool:
        return CategoricalTier.parse(vector.categorical_tier).rank >= self.tier.rank


@dataclass(frozen=True)
class MinActivityCount:
    threshold: int

    def holds(self, vector) -> bool:
        return vector.activity_count >= self.threshold


@dataclass(frozen=True)
class MinCumulativeSpend:
    threshold: Decimal

    def holds(self, vector) -> bool:
        return vector.cumulative_spend >= self.threshold


@dataclass(frozen=True)
class MinLevel:
    level: int

    def holds(self, vector) -> bool:
        return vector.derived_level >= self.level


@dataclass(frozen=True)
class Combined:
    conditions: Tuple['Condition', ...]

    def holds(self, vector) -> bool:
        return all(condition.holds(vector) for condition in self.conditions)


Condition = Union[MinPoints, MinCategoricalTier, MinActivityCount, MinCumulativeSpend, MinLevel, Combined]


@dataclass(frozen=True)
class PerkEligibilityResult:
    """Unlock status of one perk for one user. Computed on demand, never stored."""
    perk_id: int
    unlocked: bool
    name: Optional[str] = None
    brand_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'perk_id': self.perk_id,
            'name': self.name,
            'brand_id': self.brand_id,
            'unlocked': self.unlocked,
        }


# ==================== Parsing ====================

def _require(raw: Dict[str, Any], key: str):
    if key not in raw or raw[key] is None:
        raise InvalidInputError(f"Condition '{raw.get('type')}' requires '{key}'", key)
    return raw[key]


def parse_condition(raw) -> Condition:
    """
    Build a condition from its stored JSON form.

    Raises:
        InvalidInputError: Missing, unknown or malformed condition
    """
    if not isinstance(raw, dict):
        raise InvalidInputError('Unlock condition must be an object', 'unlock_condition')

    condition_type = raw.get('type')

    if condition_type == 'min_points':
        return MinPoints(non_negative_int(_require(raw, 'threshold'), 'threshold'))

    if condition_type == 'min_categorical_tier':
        return MinCategoricalTier(CategoricalTier.parse(_require(raw, 'tier')))

    if condition_type == 'min_activity_count':
        return MinActivityCount(non_negative_int(_require(raw, 'threshold'), 'threshold'))

    if condition_type == 'min_cumulative_spend':
        return MinCumulativeSpend(non_negative_decimal(_require(raw, 'threshold'), 'threshold'))

    if condition_type == 'min_level':
        level = non_negative_int(_require(raw, 'level'), 'level')
        if level > MAX_LEVEL:
            raise InvalidInputError(f'level must be between 0 and {MAX_LEVEL}', 'level')
        return MinLevel(level)

    if condition_type == 'combined':
        subconditions = _require(raw, 'conditions')
        if not isinstance(subconditions, list) or not subconditions:
            raise InvalidInputError('combined condition needs a non-empty list of conditions', 'conditions')
        return Combined(tuple(parse_condition(sub) for sub in subconditions))

    raise InvalidInputError(f"Unknown unlock condition type '{condition_type}'", 'unlock_condition')


# ==================== Evaluation ====================

def is_unlocked(condition: Condition, vector) -> bool:
    """Pure check of a parsed condition against an attribute vector."""
    return condition.holds(vector)


def evaluate_perk(perk, vector) -> PerkEligibilityResult:
    """
    Evaluate one perk row. Never raises: a malformed or missing condition
    yields unlocked=False.
    """
    try:
        condition = parse_condition(perk.unlock_condition)
        unlocked = is_unlocked(condition, vector)
    except InvalidInputError as e:
        logger.warning(f'Perk {perk.id} has an invalid unlock condition, treating as locked: {e.message}')
        unlocked = False
    except (ValueError, TypeError, RecursionError) as e:
        logger.warning(f'Perk {perk.id} unlock condition could not be evaluated, treating as locked: {e}')
        unlocked = False

    return PerkEligibilityResult(
        perk_id=perk.id,
        unlocked=unlocked,
        name=perk.name,
        brand_id=perk.brand_id,
    )


def evaluate_perks(perks: List, vector) -> List[PerkEligibilityResult]:
    return [evaluate_perk(perk, vector) for perk in perks]
