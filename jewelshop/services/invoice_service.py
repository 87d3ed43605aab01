"""Sales invoice creation. Shared by the invoices API and the create_invoice action."""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from jewelshop.models.customer import Customer
from jewelshop.models.invoice import Invoice, InvoiceItem
from jewelshop.services.settings_service import (
    allocate_invoice_number, format_invoice_number, get_settings,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_totals(item_totals: Iterable[float], gst_percentage: float) -> dict:
    """
    GST breakdown for an invoice.

    Returns dict with subtotal, gst_amount, grand_total (floats, 2 places).
    Jewellery GST in India is 3%, which is the usual default.
    """
    subtotal = sum((Decimal(str(t)) for t in item_totals), Decimal("0"))
    gst_amount = subtotal * Decimal(str(gst_percentage)) / Decimal("100")
    return {
        "subtotal": float(_money(subtotal)),
        "gst_amount": float(_money(gst_amount)),
        "grand_total": float(_money(subtotal + gst_amount)),
    }


def get_owned_customer(db: Session, user_id: str, customer_id: str) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id, Customer.user_id == user_id).first()


def create_invoice(
    db: Session,
    user_id: str,
    *,
    invoice_date: date,
    customer_name: str,
    firm_name: str,
    items: List[dict],
    gst_percentage: float = 3,
    customer_id: Optional[str] = None,
    customer_address: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_email: Optional[str] = None,
    firm_address: Optional[str] = None,
    firm_phone: Optional[str] = None,
    firm_gstin: Optional[str] = None,
    subtotal: Optional[float] = None,
    gst_amount: Optional[float] = None,
    grand_total: Optional[float] = None,
    notes: Optional[str] = None,
    status: Optional[str] = None,
) -> Invoice:
    """
    Allocate a number and insert the invoice with its items.

    items: dicts with name, quantity, weight, price_per_gram, total.
    Totals not supplied by the caller are computed from the items.
    Flushes but does not commit: the caller owns the transaction.
    """
    totals = calculate_totals([item["total"] for item in items], gst_percentage)
    current, _ = allocate_invoice_number(db, user_id)
    user_settings = get_settings(db, user_id)
    prefix = user_settings.invoice_default_prefix if user_settings else None
    invoice_number = format_invoice_number(prefix, current)

    invoice = Invoice(
        user_id=user_id,
        customer_id=customer_id,
        invoice_number=invoice_number,
        invoice_date=invoice_date,
        status=status or "finalized",
        customer_name_snapshot=customer_name,
        customer_address_snapshot=customer_address,
        customer_phone_snapshot=customer_phone,
        customer_email_snapshot=customer_email,
        firm_name_snapshot=firm_name,
        firm_address_snapshot=firm_address,
        firm_phone_snapshot=firm_phone,
        firm_gstin_snapshot=firm_gstin,
        subtotal=_money(subtotal if subtotal is not None else totals["subtotal"]),
        gst_percentage=Decimal(str(gst_percentage)),
        gst_amount=_money(gst_amount if gst_amount is not None else totals["gst_amount"]),
        grand_total=_money(grand_total if grand_total is not None else totals["grand_total"]),
        notes=notes,
    )
    for item in items:
        invoice.items.append(
            InvoiceItem(
                user_id=user_id,
                name=item["name"],
                quantity=item.get("quantity", 1),
                weight=Decimal(str(item["weight"])),
                price_per_gram=_money(item["price_per_gram"]),
                total=_money(item["total"]),
            )
        )
    db.add(invoice)
    db.flush()
    logger.info(f"Created invoice {invoice_number} ({invoice.id}) for user {user_id}, {len(items)} item(s)")
    return invoice
