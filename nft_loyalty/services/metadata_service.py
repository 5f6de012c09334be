"""
Metadata Generator.

Builds the visual/metadata descriptor for a user's current level. Output is a
pure function of (user_id, vector): the same inputs always produce the same
descriptor, so it is safe to regenerate on every read.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from ..models.attributes import AttributeVector
from .level_rules import (
    CategoricalTier,
    ELITE_RARITY_LEVEL,
    MAX_LEVEL,
    RARE_RARITY_LEVEL,
    get_level_definition,
    get_next_level_definition,
)

RARITY_ELITE = 'Elite'
RARITY_RARE = 'Rare'
RARITY_COMMON = 'Common'


def rarity_for(level: int) -> str:
    if level >= ELITE_RARITY_LEVEL:
        return RARITY_ELITE
    if level >= RARE_RARITY_LEVEL:
        return RARITY_RARE
    return RARITY_COMMON


def progress_to_next(vector: AttributeVector) -> int:
    """
    Percentage (0-100) toward the next level, by points only.

    100 at the top level, or when the next level has no points requirement.
    Halves round up.
    """
    if vector.derived_level >= MAX_LEVEL:
        return 100

    next_definition = get_next_level_definition(vector.derived_level)
    required = next_definition.requirements.points if next_definition else None
    if not required:
        return 100

    ratio = Decimal(100) * Decimal(vector.points) / Decimal(required)
    percent = int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return min(100, percent)


@dataclass(frozen=True)
class Descriptor:
    """Generated metadata for one user at one level."""
    user_id: str
    level: int
    name: str
    description: str
    image_locator: str
    traits: List[Dict[str, Any]] = field(default_factory=list)
    progress_to_next: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'level': self.level,
            'name': self.name,
            'description': self.description,
            'image_locator': self.image_locator,
            'traits': list(self.traits),
            'progress_to_next': self.progress_to_next,
        }

    def to_token_metadata(self, resolver, external_url_base: str,
                          name_prefix: str = 'Loyalty NFT',
                          token_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Render as an ERC-721 metadata document.

        Args:
            resolver: BlobLocatorResolver used for the image URL
            external_url_base: Base of the per-token external link
            name_prefix: Collection name shown before the token number
            token_id: Minted token id; the user id is used until one exists
        """
        reference = token_id if token_id is not None else self.user_id
        return {
            'name': f'{name_prefix} #{reference}',
            'description': self.description,
            'image': resolver.resolve(self.image_locator),
            'external_url': f"{external_url_base.rstrip('/')}/{reference}",
            'attributes': list(self.traits),
            'loyalty_ecosystem': {
                'level': self.level,
                'level_name': self.name,
                'max_level': MAX_LEVEL,
                'progress_to_next_level': self.progress_to_next,
            },
        }


class MetadataGenerator:
    """
    Usage:
        descriptor = MetadataGenerator().generate(user_id, vector)
    """

    def _traits(self, vector: AttributeVector, level_name: str) -> List[Dict[str, Any]]:
        tier = CategoricalTier.parse(vector.categorical_tier)
        traits = [
            {'trait_type': 'Loyalty Level', 'value': vector.derived_level},
            {'trait_type': 'Level Name', 'value': level_name},
            {'trait_type': 'Loyalty Points', 'value': vector.points},
            {'trait_type': 'Flights Taken', 'value': vector.activity_count},
            {'trait_type': 'Bank Tier', 'value': tier.value},
            {'trait_type': 'Total Spending', 'value': str(vector.cumulative_spend)},
            {'trait_type': 'Rarity', 'value': rarity_for(vector.derived_level)},
        ]
        if vector.last_updated is not None:
            traits.append({'trait_type': 'Last Updated', 'value': vector.last_updated.isoformat()})
        return traits

    def generate(self, user_id, vector: AttributeVector) -> Descriptor:
        """
        Raises:
            ConfigurationError: The stored level has no definition
        """
        definition = get_level_definition(vector.derived_level)
        return Descriptor(
            user_id=str(user_id),
            level=definition.level,
            name=definition.name,
            description=definition.description,
            image_locator=definition.image_locator,
            traits=self._traits(vector, definition.name),
            progress_to_next=progress_to_next(vector),
        )
