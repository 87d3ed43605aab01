"""User settings: firm details, notifications, invoice numbering, labels, photos."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jewelshop.api.deps import get_db, get_current_user_id
from jewelshop.schemas.settings import SettingsUpdate, SettingsResponse, InvoiceNumberSet
from jewelshop.services.settings_service import (
    get_settings, save_settings, allocate_invoice_number, set_next_invoice_number,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
def read_settings(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """null data means the user has never saved settings."""
    row = get_settings(db, user_id)
    return {"data": SettingsResponse.model_validate(row) if row else None}


@router.patch("")
def patch_settings(
    data: SettingsUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Partial upsert: only keys present in the body are written."""
    row = save_settings(db, user_id, data.model_dump(exclude_unset=True))
    return {"data": SettingsResponse.model_validate(row)}


@router.put("")
def replace_settings(
    data: SettingsUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Full replace: keys missing from the body are cleared, except the invoice counter."""
    values = data.model_dump()
    if "invoice_next_number" not in data.model_fields_set:
        values.pop("invoice_next_number")
    row = save_settings(db, user_id, values)
    return {"data": SettingsResponse.model_validate(row)}


@router.post("/invoice-number")
def next_invoice_number(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Reserve an invoice number.

    Returns the CURRENT number (use it on the invoice) and the one after it.
    """
    current, following = allocate_invoice_number(db, user_id)
    db.commit()
    logger.info(f"Allocated invoice number {current} for user {user_id}")
    return {"data": {"currentNumber": current, "nextNumber": following}}


@router.put("/invoice-number")
def set_invoice_number(
    data: InvoiceNumberSet,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Set the next number, e.g. after importing old invoices."""
    number = set_next_invoice_number(db, user_id, data.number)
    return {"data": {"nextNumber": number}}
