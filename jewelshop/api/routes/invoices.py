"""Sales invoices with line items."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from jewelshop.api.deps import get_db, get_current_user_id, get_request_id
from jewelshop.core.audit import AuditLog
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.invoice import Invoice
from jewelshop.schemas.invoice import InvoiceCreate, InvoiceResponse
from jewelshop.services.invoice_service import create_invoice, get_owned_customer

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_owned(db: Session, user_id: str, invoice_id: str) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(joinedload(Invoice.items))
        .filter(Invoice.id == invoice_id, Invoice.user_id == user_id)
        .first()
    )
    if not invoice:
        raise BusinessError.not_found("Invoice")
    return invoice


@router.get("")
def list_invoices(
    search: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    invoice_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    q = db.query(Invoice).filter(Invoice.user_id == user_id)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Invoice.invoice_number.ilike(pattern), Invoice.customer_name_snapshot.ilike(pattern)))
    if date_from:
        q = q.filter(Invoice.invoice_date >= date_from)
    if date_to:
        q = q.filter(Invoice.invoice_date <= date_to)
    if invoice_status:
        q = q.filter(Invoice.status == invoice_status)

    total = q.count()
    rows = (
        q.options(joinedload(Invoice.items))
        .order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [InvoiceResponse.model_validate(i) for i in rows],
        "meta": {"page": page, "limit": limit, "total": total},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_sales_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    request_id: str = Depends(get_request_id),
):
    if data.customer_id and not get_owned_customer(db, user_id, data.customer_id):
        raise BusinessError.not_found("Customer")

    invoice = create_invoice(
        db,
        user_id,
        invoice_date=data.invoice_date,
        customer_name=data.customer_name_snapshot,
        firm_name=data.firm_name_snapshot,
        items=[item.model_dump() for item in data.items],
        gst_percentage=data.gst_percentage,
        customer_id=data.customer_id,
        customer_address=data.customer_address_snapshot,
        customer_phone=data.customer_phone_snapshot,
        customer_email=data.customer_email_snapshot,
        firm_address=data.firm_address_snapshot,
        firm_phone=data.firm_phone_snapshot,
        firm_gstin=data.firm_gstin_snapshot,
        subtotal=data.subtotal,
        gst_amount=data.gst_amount,
        grand_total=data.grand_total,
        notes=data.notes,
        status=data.status,
    )
    db.commit()
    db.refresh(invoice)
    AuditLog.record(user_id, "invoice_create", "invoice", invoice.id,
                    {"invoiceNumber": invoice.invoice_number}, request_id=request_id, route="/invoices")
    return {"data": InvoiceResponse.model_validate(invoice)}


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"data": InvoiceResponse.model_validate(_get_owned(db, user_id, invoice_id))}


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    request_id: str = Depends(get_request_id),
):
    invoice = _get_owned(db, user_id, invoice_id)
    number = invoice.invoice_number
    db.delete(invoice)
    db.commit()
    AuditLog.record(user_id, "invoice_delete", "invoice", invoice_id,
                    {"invoiceNumber": number}, request_id=request_id, route="/invoices")
    return {"data": {"success": True}}
