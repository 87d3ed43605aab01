"""User settings and invoice numbering.

The invoice counter lives in user_settings.invoice_next_number. It is only
ever advanced with a compare-and-swap UPDATE, so two concurrent allocations
can never hand out the same number.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jewelshop.core.exceptions import ConflictError
from jewelshop.models.user_settings import UserSettings

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 5
DEFAULT_INVOICE_PREFIX = "INV-"


def get_settings(db: Session, user_id: str) -> Optional[UserSettings]:
    return db.query(UserSettings).filter(UserSettings.user_id == user_id).first()


def save_settings(db: Session, user_id: str, values: Dict[str, Any]) -> UserSettings:
    """Upsert: create the row on first save, otherwise write only the given columns."""
    row = get_settings(db, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)
    for key, value in values.items():
        setattr(row, key, value)
    row.updated_at = func.now()
    db.commit()
    db.refresh(row)
    logger.info(f"Settings saved for user {user_id}: {sorted(values)}")
    return row


def allocate_invoice_number(db: Session, user_id: str) -> Tuple[int, int]:
    """
    Reserve the caller's next invoice number.

    Returns (current, next): `current` is the number to print on the invoice.
    Does not commit; the reservation becomes durable with the caller's
    transaction. Raises ConflictError when the counter keeps moving under us.
    """
    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        row = (
            db.query(UserSettings.invoice_next_number)
            .filter(UserSettings.user_id == user_id)
            .first()
        )

        if row is None:
            # First allocation for this user: create settings with the counter past 1
            try:
                with db.begin_nested():
                    db.add(UserSettings(user_id=user_id, invoice_next_number=2))
                logger.info(f"Created settings with invoice counter for user {user_id}")
                return 1, 2
            except IntegrityError:
                logger.info(f"Settings for user {user_id} created concurrently, retrying ({attempt})")
                continue

        stored = row[0]
        current = stored or 1
        if stored is None:
            expected = UserSettings.invoice_next_number.is_(None)
        else:
            expected = UserSettings.invoice_next_number == stored

        result = db.execute(
            update(UserSettings)
            .where(UserSettings.user_id == user_id, expected)
            .values(invoice_next_number=current + 1, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return current, current + 1

        logger.warning(f"Invoice counter moved for user {user_id}, retrying ({attempt}/{MAX_ALLOCATION_ATTEMPTS})")

    raise ConflictError("Could not allocate an invoice number. Please try again.")


def set_next_invoice_number(db: Session, user_id: str, number: int) -> int:
    row = get_settings(db, user_id)
    if row is None:
        row = UserSettings(user_id=user_id, invoice_next_number=number)
        db.add(row)
    else:
        row.invoice_next_number = number
        row.updated_at = func.now()
    db.commit()
    db.refresh(row)
    logger.info(f"Invoice counter for user {user_id} set to {number}")
    return row.invoice_next_number


def format_invoice_number(prefix: Optional[str], number: int) -> str:
    """INV-0007 style: prefix plus the number zero-padded to 4 digits."""
    return f"{prefix or DEFAULT_INVOICE_PREFIX}{number:04d}"
