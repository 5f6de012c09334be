"""
Perk Catalog.

Read-only view of the externally maintained perk table. Rows are converted to
plain PerkRecord values so the active list can be cached across requests.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from flask import current_app

from ..extensions import db
from ..models.perk import BrandPartner, Perk
from ..utils.cache import cache, PERK_CATALOG_KEY
from ..utils.exceptions import NotFoundError


@dataclass(frozen=True)
class PerkRecord:
    id: int
    name: str
    description: Optional[str]
    brand_id: Optional[int]
    brand_name: Optional[str]
    unlock_condition: Any
    category: Optional[str]
    value_type: Optional[str]
    value_amount: Optional[float]
    is_active: bool

    @classmethod
    def from_model(cls, perk: Perk) -> 'PerkRecord':
        return cls(
            id=perk.id,
            name=perk.name,
            description=perk.description,
            brand_id=perk.brand_id,
            brand_name=perk.brand.name if perk.brand else None,
            unlock_condition=perk.unlock_condition,
            category=perk.category,
            value_type=perk.value_type,
            value_amount=float(perk.value_amount) if perk.value_amount is not None else None,
            is_active=bool(perk.is_active),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PerkCatalog:
    """
    Usage:
        catalog = PerkCatalog()
        perks = catalog.list_active_perks()
    """

    def __init__(self, session=None, cache_timeout: int = None):
        self.session = session if session is not None else db.session
        self.cache_timeout = cache_timeout

    def _timeout(self) -> int:
        if self.cache_timeout is not None:
            return self.cache_timeout
        return current_app.config.get('PERK_CACHE_TIMEOUT', 60)

    def list_active_perks(self) -> List[PerkRecord]:
        """All active perks, ordered by brand then name (brandless perks last)."""
        cached = cache.get(PERK_CATALOG_KEY)
        if cached is not None:
            return cached

        perks = (
            self.session.query(Perk)
            .outerjoin(BrandPartner, Perk.brand_id == BrandPartner.id)
            .filter(Perk.is_active.is_(True))
            .order_by(Perk.brand_id.is_(None), BrandPartner.name, Perk.name)
            .all()
        )
        records = [PerkRecord.from_model(perk) for perk in perks]
        cache.set(PERK_CATALOG_KEY, records, timeout=self._timeout())
        return records

    def list_perks_by_brand(self, brand_id: int) -> List[PerkRecord]:
        """
        Active perks for one brand.

        Raises:
            NotFoundError: Unknown brand
        """
        brand = self.session.query(BrandPartner).filter_by(id=brand_id).first()
        if brand is None:
            raise NotFoundError('Brand', brand_id)
        return [perk for perk in self.list_active_perks() if perk.brand_id == brand_id]

    def list_brands(self) -> List[Dict[str, Any]]:
        brands = self.session.query(BrandPartner).order_by(BrandPartner.name).all()
        return [brand.to_dict() for brand in brands]
