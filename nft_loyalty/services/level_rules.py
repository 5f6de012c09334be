"""
Loyalty Level Rules.

Static level table and the evaluator that maps an attribute vector to a level.

Gating is conjunctive: a level is reached only when EVERY requirement
(points, activity count, cumulative spend, minimum categorical tier) is met
at the same time. Levels are checked from highest to lowest and the first
match wins, so the result is the highest level the vector fully qualifies for.

Requirement vectors are expected to be non-decreasing by level. That is not
enforced on the request path; validate_level_table() reports violations and
runs in the test suite and the `flask loyalty check-levels` command.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from ..utils.exceptions import ConfigurationError, InvalidInputError


class CategoricalTier(str, Enum):
    """Externally assigned qualitative tier (partner bank tier), ordered."""
    STANDARD = 'Standard'
    SILVER = 'Silver'
    GOLD = 'Gold'
    PLATINUM = 'Platinum'
    DIAMOND = 'Diamond'

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    @classmethod
    def parse(cls, value) -> 'CategoricalTier':
        """Parse a tier name case-insensitively."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for tier in cls:
                if tier.value.lower() == value.strip().lower():
                    return tier
        raise InvalidInputError(
            f"Unknown tier '{value}'. Valid tiers: {', '.join(t.value for t in cls)}",
            'tier'
        )


TIER_ORDER = [
    CategoricalTier.STANDARD,
    CategoricalTier.SILVER,
    CategoricalTier.GOLD,
    CategoricalTier.PLATINUM,
    CategoricalTier.DIAMOND,
]


@dataclass(frozen=True)
class LevelRequirements:
    """Minimum requirements for a level. None means unconstrained."""
    points: Optional[int] = None
    activity_count: Optional[int] = None
    cumulative_spend: Optional[Decimal] = None
    min_categorical_tier: Optional[CategoricalTier] = None

    def is_met_by(self, vector) -> bool:
        """Check every dimension against the vector (AND, not OR)."""
        if self.points is not None and vector.points < self.points:
            return False
        if self.activity_count is not None and vector.activity_count < self.activity_count:
            return False
        if self.cumulative_spend is not None and vector.cumulative_spend < self.cumulative_spend:
            return False
        if self.min_categorical_tier is not None:
            if CategoricalTier.parse(vector.categorical_tier).rank < self.min_categorical_tier.rank:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': self.points,
            'activity_count': self.activity_count,
            'cumulative_spend': str(self.cumulative_spend) if self.cumulative_spend is not None else None,
            'min_categorical_tier': self.min_categorical_tier.value if self.min_categorical_tier else None,
        }


@dataclass(frozen=True)
class LevelDefinition:
    """One row of the level table."""
    level: int
    name: str
    description: str
    image_locator: str
    requirements: LevelRequirements

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level,
            'name': self.name,
            'description': self.description,
            'image_locator': self.image_locator,
            'requirements': self.requirements.to_dict(),
        }


# ==================== Level Table ====================

MIN_LEVEL = 0
MAX_LEVEL = 7

# Rarity thresholds used by the metadata generator
ELITE_RARITY_LEVEL = 5
RARE_RARITY_LEVEL = 3

LEVEL_DEFINITIONS: List[LevelDefinition] = [
    LevelDefinition(
        level=0,
        name='Explorer',
        description='Welcome aboard! Start your loyalty journey.',
        image_locator='bafkreihs44bfkpmh2wnuec3b567difnksanta37x7dtbnmlcylwn7h6gw4',
        requirements=LevelRequirements(points=0, activity_count=0, cumulative_spend=Decimal('0')),
    ),
    LevelDefinition(
        level=1,
        name='Bronze Traveler',
        description="You're getting started with your travels!",
        image_locator='bafybeibh56qt2q7dq7emhbrtp7vodkbkzerepxrdeaynhpubqizri4uute',
        requirements=LevelRequirements(points=1000, activity_count=2, cumulative_spend=Decimal('5000000')),
    ),
    LevelDefinition(
        level=2,
        name='Silver Navigator',
        description="You're becoming a seasoned traveler!",
        image_locator='bafkreidwdhm7e7pk4yfltkj3scur4mo7lobq5jetxod2zdstwcvxc46ptu',
        requirements=LevelRequirements(
            points=2500, activity_count=5, cumulative_spend=Decimal('15000000'),
            min_categorical_tier=CategoricalTier.SILVER,
        ),
    ),
    LevelDefinition(
        level=3,
        name='Gold Adventurer',
        description='Your adventures are truly impressive!',
        image_locator='bafkreih6smgbqwhgj4cul57afpd5465o3yxnpkvwl6f2ao5x2k65tsn7uq',
        requirements=LevelRequirements(
            points=5000, activity_count=10, cumulative_spend=Decimal('35000000'),
            min_categorical_tier=CategoricalTier.GOLD,
        ),
    ),
    LevelDefinition(
        level=4,
        name='Diamond Explorer',
        description="You're a true connoisseur of luxury travel!",
        image_locator='bafybeibywmwc7vfghnchifh6dwbfzxhvb7joutacmwjf3pd2s4g2dbw2aa',
        requirements=LevelRequirements(
            points=10000, activity_count=20, cumulative_spend=Decimal('75000000'),
            min_categorical_tier=CategoricalTier.PLATINUM,
        ),
    ),
    LevelDefinition(
        level=5,
        name='Platinum Voyager',
        description='Your loyalty and engagement are exceptional!',
        image_locator='bafkreibjamecx6mrlua2bubdjek6el25gkgylkifnnkapu57jhn7dayqly',
        requirements=LevelRequirements(
            points=20000, activity_count=35, cumulative_spend=Decimal('150000000'),
            min_categorical_tier=CategoricalTier.PLATINUM,
        ),
    ),
    LevelDefinition(
        level=6,
        name='Elite Wings',
        description="You've reached the pinnacle of travel excellence!",
        image_locator='bafybeihajokglb5lfg2ujjidpgxdvsgy2cretjntrbdio7ffxo6vbqoaiy',
        requirements=LevelRequirements(
            points=35000, activity_count=50, cumulative_spend=Decimal('300000000'),
            min_categorical_tier=CategoricalTier.DIAMOND,
        ),
    ),
    LevelDefinition(
        level=7,
        name='Royal Crown',
        description='You are the ultimate loyalty member!',
        image_locator='bafybeie36og74jvgzjisjwzxs5c75rcm7e4g7qj6jmvyszxldp5nexyfly',
        requirements=LevelRequirements(
            points=50000, activity_count=75, cumulative_spend=Decimal('500000000'),
            min_categorical_tier=CategoricalTier.DIAMOND,
        ),
    ),
]

_DEFINITIONS_BY_LEVEL = {definition.level: definition for definition in LEVEL_DEFINITIONS}


# ==================== Evaluation ====================

def evaluate_level(vector, definitions: List[LevelDefinition] = None) -> int:
    """
    Compute the loyalty level for an attribute vector.

    Args:
        vector: Anything exposing points, activity_count, cumulative_spend
            and categorical_tier (derived_level is ignored)
        definitions: Level table override (defaults to LEVEL_DEFINITIONS)

    Returns:
        Highest level whose requirements are all satisfied, clamped to
        [MIN_LEVEL, MAX_LEVEL]. Level 0 when nothing matches.
    """
    table = definitions if definitions is not None else LEVEL_DEFINITIONS
    level = MIN_LEVEL

    for definition in sorted(table, key=lambda d: d.level, reverse=True):
        if definition.requirements.is_met_by(vector):
            level = definition.level
            break

    return max(MIN_LEVEL, min(level, MAX_LEVEL))


def get_level_definition(level: int) -> LevelDefinition:
    """
    Look up a level definition.

    Raises:
        ConfigurationError: If the level is not in the table
    """
    definition = _DEFINITIONS_BY_LEVEL.get(level)
    if definition is None:
        raise ConfigurationError(f'No level definition for level {level}')
    return definition


def get_next_level_definition(level: int) -> Optional[LevelDefinition]:
    """Definition for level + 1, or None at the top of the table."""
    if level >= MAX_LEVEL:
        return None
    return get_level_definition(level + 1)


def validate_level_table(definitions: List[LevelDefinition] = None) -> List[str]:
    """
    Check the design preconditions of a level table.

    - levels are unique and cover MIN_LEVEL..MAX_LEVEL
    - the floor level is trivially satisfiable
    - every constrained requirement is non-decreasing by level

    Returns:
        List of human-readable problems (empty when the table is sound)
    """
    table = definitions if definitions is not None else LEVEL_DEFINITIONS
    problems = []

    levels = [d.level for d in table]
    if len(set(levels)) != len(levels):
        problems.append('Duplicate level numbers in level table')
    expected = list(range(MIN_LEVEL, MAX_LEVEL + 1))
    if sorted(set(levels)) != expected:
        problems.append(f'Level table must cover levels {MIN_LEVEL}..{MAX_LEVEL}, got {sorted(levels)}')

    ordered = sorted(table, key=lambda d: d.level)
    if ordered:
        floor = ordered[0].requirements
        if (floor.points or 0) > 0 or (floor.activity_count or 0) > 0 \
                or (floor.cumulative_spend or Decimal('0')) > 0 \
                or (floor.min_categorical_tier and floor.min_categorical_tier.rank > 0):
            problems.append(f'Floor level {ordered[0].level} has non-trivial requirements')

    for field in ('points', 'activity_count', 'cumulative_spend'):
        previous = None
        for definition in ordered:
            value = getattr(definition.requirements, field)
            if value is None:
                continue
            if previous is not None and value < previous[1]:
                problems.append(
                    f'{field} requirement decreases from level {previous[0]} '
                    f'({previous[1]}) to level {definition.level} ({value})'
                )
            previous = (definition.level, value)

    previous = None
    for definition in ordered:
        tier = definition.requirements.min_categorical_tier
        if tier is None:
            continue
        if previous is not None and tier.rank < previous[1].rank:
            problems.append(
                f'min_categorical_tier decreases from level {previous[0]} '
                f'({previous[1].value}) to level {definition.level} ({tier.value})'
            )
        previous = (definition.level, tier)

    return problems
