"""
Token Issuance.

Minting is delegated to an injected issuer (a chain client, custodial API,
etc.) registered on the app as ``app.extensions['token_issuer']``. The issuer
is any callable:

    issuer(user_id, token_uri) -> MintResult

This service only builds the token URI, calls the issuer once and records
what it reported. It never retries a mint on its own.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app

from ..extensions import db
from ..models.loyalty_token import LoyaltyToken
from ..utils.exceptions import ConfigurationError, DuplicateError, NotFoundError, TransientError
from .attribute_store import normalize_user_id


@dataclass(frozen=True)
class MintResult:
    success: bool
    token_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    error: Optional[str] = None


Issuer = Callable[[str, str], MintResult]

ISSUER_KEY = 'token_issuer'


class TokenIssuanceService:
    """
    Usage:
        service = TokenIssuanceService(issuer, metadata_base_url)
        token = service.mint(user_id)
    """

    def __init__(self, issuer: Optional[Issuer], metadata_base_url: str, session=None):
        self._issuer = issuer
        self.metadata_base_url = metadata_base_url.rstrip('/')
        self.session = session if session is not None else db.session

    @property
    def issuer(self) -> Optional[Issuer]:
        # issuers may be registered on the app after the engine is built
        if self._issuer is not None:
            return self._issuer
        return current_app.extensions.get(ISSUER_KEY)

    def token_uri_for(self, user_id) -> str:
        return f'{self.metadata_base_url}/{normalize_user_id(user_id)}'

    def get_token(self, user_id) -> LoyaltyToken:
        """
        Raises:
            NotFoundError: No token recorded for this user
        """
        user_id = normalize_user_id(user_id)
        token = self.session.query(LoyaltyToken).filter_by(user_id=user_id).first()
        if token is None:
            raise NotFoundError('Token', user_id)
        return token

    def mint(self, user_id) -> LoyaltyToken:
        """
        Issue one token for a registered user.

        Raises:
            ConfigurationError: No issuer configured
            DuplicateError: User already holds a token
            TransientError: Issuer reported failure or raised
        """
        if self.issuer is None:
            raise ConfigurationError('No token issuer configured')

        user_id = normalize_user_id(user_id)
        if self.session.query(LoyaltyToken.id).filter_by(user_id=user_id).first():
            raise DuplicateError('Token for user', user_id)

        token_uri = self.token_uri_for(user_id)
        try:
            result = self.issuer(user_id, token_uri)
        except Exception as e:
            current_app.logger.error(f'Token issuer raised for {user_id}: {e}')
            raise TransientError(f'Token issuance failed for {user_id}', attempts=1, original_error=e)

        if not result.success or not result.token_id:
            current_app.logger.error(f'Token issuance failed for {user_id}: {result.error}')
            raise TransientError(f'Token issuance failed for {user_id}: {result.error or "no token id"}', attempts=1)

        token = LoyaltyToken(
            user_id=user_id,
            token_id=str(result.token_id),
            transaction_hash=result.transaction_hash,
            token_uri=token_uri,
        )
        self.session.add(token)
        self.session.commit()

        current_app.logger.info(f'Token {token.token_id} minted for {user_id} (tx {result.transaction_hash})')
        return token
