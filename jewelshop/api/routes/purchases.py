"""Purchases: supplier records and the bills received from them."""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from jewelshop.api.deps import get_db, get_current_user_id, get_blob_store, require_owned_paths
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.purchase_invoice import PurchaseInvoice
from jewelshop.models.supplier import Supplier
from jewelshop.schemas.purchases import (
    SupplierCreate, SupplierUpdate, SupplierResponse,
    PurchaseInvoiceCreate, PurchaseInvoiceUpdate, PurchaseInvoiceResponse,
)
from jewelshop.services.storage_service import PURCHASE_INVOICES_BUCKET, remove_quietly

logger = logging.getLogger(__name__)
router = APIRouter()

# Columns that must never be written as NULL on update
_REQUIRED_INVOICE_COLUMNS = ("purchase_number", "status", "payment_status")


def _get_supplier(db: Session, user_id: str, supplier_id: str) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id, Supplier.user_id == user_id).first()
    if not supplier:
        raise BusinessError.not_found("Supplier")
    return supplier


def _get_invoice(db: Session, user_id: str, invoice_id: str) -> PurchaseInvoice:
    invoice = (
        db.query(PurchaseInvoice)
        .options(joinedload(PurchaseInvoice.supplier))
        .filter(PurchaseInvoice.id == invoice_id, PurchaseInvoice.user_id == user_id)
        .first()
    )
    if not invoice:
        raise BusinessError.not_found("Purchase invoice")
    return invoice


def _generate_purchase_number() -> str:
    return f"P-{str(int(time.time() * 1000))[-6:]}"


# ==============================================================================
# SUPPLIERS
# ==============================================================================

@router.get("/suppliers")
def list_suppliers(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    q = db.query(Supplier).filter(Supplier.user_id == user_id)
    if search:
        q = q.filter(Supplier.name.ilike(f"%{search}%"))
    rows = q.order_by(Supplier.name.asc()).all()
    return {"data": [SupplierResponse.model_validate(s) for s in rows], "meta": {"total": len(rows)}}


@router.post("/suppliers", status_code=status.HTTP_201_CREATED)
def create_supplier(
    data: SupplierCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    supplier = Supplier(user_id=user_id, **data.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info(f"Supplier {supplier.id} created for user {user_id}")
    return {"data": SupplierResponse.model_validate(supplier)}


@router.get("/suppliers/{supplier_id}")
def get_supplier(
    supplier_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"data": SupplierResponse.model_validate(_get_supplier(db, user_id, supplier_id))}


@router.put("/suppliers/{supplier_id}")
def update_supplier(
    supplier_id: str,
    data: SupplierUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    supplier = _get_supplier(db, user_id, supplier_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(supplier, key, value)
    db.commit()
    db.refresh(supplier)
    return {"data": SupplierResponse.model_validate(supplier)}


@router.delete("/suppliers/{supplier_id}")
def delete_supplier(
    supplier_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    supplier = _get_supplier(db, user_id, supplier_id)
    count = (
        db.query(PurchaseInvoice)
        .filter(PurchaseInvoice.supplier_id == supplier_id, PurchaseInvoice.user_id == user_id)
        .count()
    )
    if count:
        raise BusinessError.conflict(
            f"Cannot delete supplier. It is referenced in {count} purchase invoice(s). "
            "Please remove or update those references first."
        )
    db.delete(supplier)
    db.commit()
    logger.info(f"Supplier {supplier_id} deleted for user {user_id}")
    return {"data": {"success": True, "message": "Supplier deleted successfully"}}


# ==============================================================================
# PURCHASE INVOICES
# ==============================================================================

@router.get("/invoices")
def list_purchase_invoices(
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Newest bill first. search matches our purchase number or the supplier's bill number."""
    q = (
        db.query(PurchaseInvoice)
        .options(joinedload(PurchaseInvoice.supplier))
        .filter(PurchaseInvoice.user_id == user_id)
    )
    if search:
        q = q.filter(or_(
            PurchaseInvoice.purchase_number.ilike(f"%{search}%"),
            PurchaseInvoice.invoice_number.ilike(f"%{search}%"),
        ))
    if status_filter:
        q = q.filter(PurchaseInvoice.status == status_filter)
    if payment_status:
        q = q.filter(PurchaseInvoice.payment_status == payment_status)
    rows = q.order_by(PurchaseInvoice.invoice_date.desc()).all()
    return {"data": [PurchaseInvoiceResponse.model_validate(p) for p in rows]}


@router.post("/invoices", status_code=status.HTTP_201_CREATED)
def create_purchase_invoice(
    data: PurchaseInvoiceCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    require_owned_paths(user_id, [data.invoice_file_url])
    if data.supplier_id:
        _get_supplier(db, user_id, data.supplier_id)

    values = data.model_dump()
    values["purchase_number"] = data.purchase_number or _generate_purchase_number()
    values["status"] = data.status or "Received"
    values["payment_status"] = data.payment_status or "Unpaid"
    invoice = PurchaseInvoice(user_id=user_id, **values)
    db.add(invoice)
    db.commit()
    logger.info(f"Purchase invoice {invoice.id} ({invoice.purchase_number}) created for user {user_id}")
    return {"data": PurchaseInvoiceResponse.model_validate(_get_invoice(db, user_id, invoice.id))}


@router.get("/invoices/{invoice_id}")
def get_purchase_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"data": PurchaseInvoiceResponse.model_validate(_get_invoice(db, user_id, invoice_id))}


@router.put("/invoices/{invoice_id}")
def update_purchase_invoice(
    invoice_id: str,
    data: PurchaseInvoiceUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    invoice = _get_invoice(db, user_id, invoice_id)
    changes = data.model_dump(exclude_unset=True)
    require_owned_paths(user_id, [changes.get("invoice_file_url")])
    if changes.get("supplier_id"):
        _get_supplier(db, user_id, changes["supplier_id"])
    for column in _REQUIRED_INVOICE_COLUMNS:
        if column in changes and changes[column] is None:
            del changes[column]

    old_file = invoice.invoice_file_url
    for key, value in changes.items():
        setattr(invoice, key, value)
    db.commit()

    # Replaced or cleared bill scan: drop the old object
    if "invoice_file_url" in changes and old_file and old_file != changes["invoice_file_url"]:
        remove_quietly(blob_store, PURCHASE_INVOICES_BUCKET, [old_file], user_id)
    return {"data": PurchaseInvoiceResponse.model_validate(_get_invoice(db, user_id, invoice_id))}


@router.delete("/invoices/{invoice_id}")
def delete_purchase_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    invoice = _get_invoice(db, user_id, invoice_id)
    file_path = invoice.invoice_file_url
    db.delete(invoice)
    db.commit()
    remove_quietly(blob_store, PURCHASE_INVOICES_BUCKET, [file_path], user_id)
    logger.info(f"Purchase invoice {invoice_id} deleted for user {user_id}")
    return {"data": {"success": True, "message": "Purchase invoice deleted successfully"}}
