"""
Attribute Store.

Narrow persistence contract for attribute vectors:

- get_vector(user_id)           read a snapshot (UserNotFoundError if absent)
- create_vector(user_id)        explicit registration step, zeroed vector
- atomic_update(user_id, fn)    serializable read-modify-write of one row

atomic_update is the only write path. Two mechanisms keep it linearizable
per user across processes:

1. the row is read with SELECT ... FOR UPDATE (PostgreSQL holds the row lock
   until commit; SQLite ignores the clause and serializes writers itself)
2. the mapped version_id_col turns the UPDATE into a compare-and-swap, so a
   write computed from a stale read raises StaleDataError

Conflicts and OperationalErrors are rolled back and retried up to
max_retries times, then surfaced as TransientError.
"""
import time
from datetime import datetime
from typing import Callable, Optional, List

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models.attributes import AttributeVector, LoyaltyAttributes
from ..utils.exceptions import DuplicateError, TransientError, UserNotFoundError


DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 0.05  # seconds, multiplied by attempt number

# Receives the current snapshot, returns the next one
DeltaFn = Callable[[AttributeVector], AttributeVector]

# Receives (before, after), returns extra rows to write in the same transaction
RecordFn = Callable[[AttributeVector, AttributeVector], list]


def normalize_user_id(user_id) -> str:
    """Stable key for a user: trimmed and lower-cased."""
    return str(user_id).strip().lower()


class AttributeStore:
    """
    Persistence adapter for attribute vectors.

    Usage:
        store = AttributeStore(db.session, max_retries=3)
        vector = store.atomic_update(user_id, lambda v: v.evolve(points=v.points + 10))
    """

    def __init__(self, session=None, max_retries: int = DEFAULT_MAX_RETRIES,
                 retry_backoff: float = DEFAULT_RETRY_BACKOFF):
        self.session = session if session is not None else db.session
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff

    # ==================== Reads ====================

    def get_vector(self, user_id) -> AttributeVector:
        """
        Read the current vector for a user.

        Raises:
            UserNotFoundError: No vector has been created for this user
        """
        user_id = normalize_user_id(user_id)
        row = self.session.query(LoyaltyAttributes).filter_by(user_id=user_id).first()
        if row is None:
            raise UserNotFoundError(user_id)
        return row.snapshot()

    def find_vector(self, user_id) -> Optional[AttributeVector]:
        """Like get_vector but returns None when absent."""
        try:
            return self.get_vector(user_id)
        except UserNotFoundError:
            return None

    def list_user_ids(self) -> List[str]:
        rows = self.session.query(LoyaltyAttributes.user_id).order_by(LoyaltyAttributes.id).all()
        return [row[0] for row in rows]

    # ==================== Writes ====================

    def create_vector(self, user_id) -> AttributeVector:
        """
        Create a zeroed vector (Standard tier, level 0).

        Raises:
            DuplicateError: The user already has a vector
        """
        user_id = normalize_user_id(user_id)
        if self.session.query(LoyaltyAttributes.id).filter_by(user_id=user_id).first():
            raise DuplicateError('User', user_id)

        row = LoyaltyAttributes(user_id=user_id, last_updated=datetime.utcnow())
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # Concurrent registration won the unique constraint
            self.session.rollback()
            raise DuplicateError('User', user_id)

        current_app.logger.info(f'Attribute vector created for {user_id}')
        return row.snapshot()

    def atomic_update(self, user_id, delta_fn: DeltaFn, record: RecordFn = None) -> AttributeVector:
        """
        Read-modify-write one user's vector as a single serializable unit.

        Args:
            user_id: User whose vector to update
            delta_fn: Pure function from current snapshot to next snapshot.
                May be called more than once when a conflict forces a retry.
            record: Optional function returning extra ORM rows (audit/history)
                to commit in the same transaction

        Returns:
            The committed snapshot

        Raises:
            UserNotFoundError: No vector exists for this user
            TransientError: Conflicts/outages persisted past max_retries
            Exception: Anything raised by delta_fn (after rollback)
        """
        user_id = normalize_user_id(user_id)
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            try:
                row = (
                    self.session.query(LoyaltyAttributes)
                    .filter_by(user_id=user_id)
                    .with_for_update()
                    .populate_existing()
                    .first()
                )
                if row is None:
                    self.session.rollback()
                    raise UserNotFoundError(user_id)

                before = row.snapshot()
                after = delta_fn(before)
                row.apply(after)

                if record is not None:
                    for extra in record(before, after) or []:
                        self.session.add(extra)

                self.session.commit()
                return row.snapshot()

            except (StaleDataError, OperationalError) as e:
                self.session.rollback()
                last_error = e
                current_app.logger.warning(
                    f'Attribute update conflict for {user_id} '
                    f'(attempt {attempt}/{self.max_retries}): {e}'
                )
                if attempt < self.max_retries and self.retry_backoff:
                    time.sleep(self.retry_backoff * attempt)

            except Exception:
                self.session.rollback()
                raise

        current_app.logger.error(
            f'Attribute update for {user_id} failed after {self.max_retries} attempts: {last_error}'
        )
        raise TransientError(
            f'Could not update attributes for {user_id} after {self.max_retries} attempts',
            attempts=self.max_retries,
            original_error=last_error
        )
