"""
Loyalty Engine.

Facade over the store, processor, catalog and generators. One instance is
built per app by init_engine() and kept in app.extensions; routes and CLI
commands reach it through get_engine().
"""
from typing import List, Optional

from flask import Flask, current_app

from ..extensions import db
from ..models.attributes import AttributeVector
from ..models.loyalty_token import LoyaltyToken
from ..models.user_action import UserAction
from .action_processor import ActionProcessor, ActionResult
from .attribute_store import AttributeStore, normalize_user_id
from .blob_locator import BlobLocatorResolver
from .metadata_service import Descriptor, MetadataGenerator
from .perk_catalog import PerkCatalog
from .perk_eligibility import PerkEligibilityResult, evaluate_perks
from .token_issuance import ISSUER_KEY, TokenIssuanceService

ENGINE_KEY = 'loyalty_engine'


class LoyaltyEngine:
    """
    Usage:
        engine = get_engine()
        result = engine.process_action('0xabc', 'bank_transaction', {'amount': 2500000})
        descriptor = engine.get_metadata('0xabc')
    """

    def __init__(self, store: AttributeStore, catalog: PerkCatalog, processor: ActionProcessor = None,
                 generator: MetadataGenerator = None, resolver: BlobLocatorResolver = None,
                 tokens: TokenIssuanceService = None):
        self.store = store
        self.catalog = catalog
        self.processor = processor or ActionProcessor(store)
        self.generator = generator or MetadataGenerator()
        self.resolver = resolver
        self.tokens = tokens

    # ==================== Users ====================

    def register_user(self, user_id) -> AttributeVector:
        return self.store.create_vector(user_id)

    def get_vector(self, user_id) -> AttributeVector:
        return self.store.get_vector(user_id)

    # ==================== Actions ====================

    def process_action(self, user_id, action_type: str, payload: dict = None) -> ActionResult:
        """
        Raises:
            InvalidInputError: Unknown action type or bad payload
            UserNotFoundError: User not registered
            TransientError: Storage conflict persisted past retries
        """
        return self.processor.process(user_id, action_type, payload)

    def set_categorical_tier(self, user_id, tier) -> ActionResult:
        return self.processor.set_categorical_tier(user_id, tier)

    def action_history(self, user_id, limit: int = 50) -> List[UserAction]:
        vector = self.store.get_vector(user_id)
        return (
            UserAction.query
            .filter_by(user_id=vector.user_id)
            .order_by(UserAction.created_at.desc(), UserAction.id.desc())
            .limit(limit)
            .all()
        )

    # ==================== Reads ====================

    def get_metadata(self, user_id) -> Descriptor:
        vector = self.store.get_vector(user_id)
        return self.generator.generate(vector.user_id, vector)

    def get_perk_eligibility(self, user_id) -> List[PerkEligibilityResult]:
        vector = self.store.get_vector(user_id)
        return evaluate_perks(self.catalog.list_active_perks(), vector)

    def token_id_for(self, user_id) -> Optional[str]:
        """Minted token id for a user, or None."""
        token = LoyaltyToken.query.filter_by(user_id=normalize_user_id(user_id)).first()
        return token.token_id if token else None


def init_engine(app: Flask) -> LoyaltyEngine:
    """Build the engine from app config and register it on the app."""
    store = AttributeStore(
        db.session,
        max_retries=app.config.get('LOYALTY_ACTION_MAX_RETRIES', 3),
        retry_backoff=app.config.get('LOYALTY_ACTION_RETRY_BACKOFF', 0.05),
    )
    engine = LoyaltyEngine(
        store=store,
        catalog=PerkCatalog(db.session),
        resolver=BlobLocatorResolver(app.config['BLOB_GATEWAY_URL']),
        tokens=TokenIssuanceService(
            app.extensions.get(ISSUER_KEY),
            app.config['METADATA_BASE_URL'],
            db.session,
        ),
    )
    app.extensions[ENGINE_KEY] = engine
    return engine


def get_engine() -> LoyaltyEngine:
    return current_app.extensions[ENGINE_KEY]
