"""
create_invoice action: schema, validation and execution.

extracted_data uses camelCase keys (customerName, pricePerGram, ...), the
shape the chat front end produces. Domain problems (bad data, missing firm
settings, unknown customer) come back as a failed ActionResult; anything
unexpected propagates to the state machine.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from jewelshop.agent.executor import ActionExecutor, ActionResult, ValidationIssue
from jewelshop.core.exceptions import ConflictError
from jewelshop.models.customer import Customer
from jewelshop.schemas.common import EMAIL_RE
from jewelshop.services.invoice_service import calculate_totals, create_invoice, get_owned_customer
from jewelshop.services.settings_service import get_settings

logger = logging.getLogger(__name__)

LOW_PRICE_PER_GRAM = 100
HIGH_PRICE_PER_GRAM = 10000


class InvoiceActionItem(BaseModel):
    name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    weight: float = Field(gt=0)
    price_per_gram: float = Field(gt=0)
    total: float = Field(gt=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class InvoiceActionData(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    customer_id: Optional[str] = None  # existing customer

    invoice_date: date = Field(default_factory=date.today)
    gst_percentage: float = Field(default=3, ge=0, le=100)

    items: List[InvoiceActionItem] = Field(min_length=1)

    # Computed from items
    subtotal: Optional[float] = None
    gst_amount: Optional[float] = None
    grand_total: Optional[float] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("customer_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("customer_email", mode="before")
    @classmethod
    def email_or_blank(cls, v):
        if v is None or v == "":
            return None
        if not isinstance(v, str) or not EMAIL_RE.match(v.strip()):
            raise ValueError("Invalid email")
        return v.strip()

    @field_validator("invoice_date", mode="before")
    @classmethod
    def date_part(cls, v):
        # Accept full ISO timestamps from the client
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


def format_inr(amount: float) -> str:
    """₹ with Indian digit grouping: 123456.5 -> ₹1,23,456.50"""
    whole, frac = f"{amount:.2f}".split(".")
    sign = ""
    if whole.startswith("-"):
        sign, whole = "-", whole[1:]
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"₹{sign}{whole}.{frac}"


def _issues_from(error: ValidationError) -> List[ValidationIssue]:
    issues = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "general"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append(ValidationIssue(field=loc, message=message))
    return issues


class _InvoiceActionFailed(Exception):
    def __init__(self, message: str, issues: Optional[List[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or [ValidationIssue(field="general", message=message)]


class CreateInvoiceExecutor(ActionExecutor):
    action_type = "create_invoice"
    audit_action = "ai_invoice_create"
    audit_entity = "invoice"

    def validate(self, db: Session, data: dict, user_id: str) -> Tuple[Optional[dict], List[ValidationIssue]]:
        """
        Schema check, owned-customer check and price sanity warnings.

        Warnings never block; errors do. On success returns the payload with
        computed subtotal / gstAmount / grandTotal filled in.
        """
        try:
            payload = InvoiceActionData.model_validate(data or {})
        except ValidationError as e:
            return None, _issues_from(e)

        issues: List[ValidationIssue] = []
        if payload.customer_id and not get_owned_customer(db, user_id, payload.customer_id):
            issues.append(ValidationIssue(field="customerId", message="Customer not found"))

        for index, item in enumerate(payload.items):
            if item.price_per_gram < LOW_PRICE_PER_GRAM:
                issues.append(ValidationIssue(
                    field=f"items[{index}].pricePerGram",
                    message=f"Price {item.price_per_gram:g}/gram seems too low. Please verify.",
                    severity="warning",
                ))
            if item.price_per_gram > HIGH_PRICE_PER_GRAM:
                issues.append(ValidationIssue(
                    field=f"items[{index}].pricePerGram",
                    message=f"Price {item.price_per_gram:g}/gram seems very high. Please verify.",
                    severity="warning",
                ))

        if any(issue.severity == "error" for issue in issues):
            return None, issues

        totals = calculate_totals([item.total for item in payload.items], payload.gst_percentage)
        payload.subtotal = totals["subtotal"]
        payload.gst_amount = totals["gst_amount"]
        payload.grand_total = totals["grand_total"]
        return payload.model_dump(mode="json", by_alias=True), issues

    def execute(self, db: Session, data: dict, user_id: str, action_id: str) -> ActionResult:
        logger.info(f"Executing action {action_id}: create_invoice for user {user_id}")
        try:
            invoice = self._create(db, data, user_id)
        except _InvoiceActionFailed as e:
            logger.warning(f"Action {action_id} create_invoice failed: {e}")
            return ActionResult(
                success=False,
                action_id=action_id,
                message=f"Failed to create invoice: {e}",
                errors=e.issues,
            )

        return ActionResult(
            success=True,
            action_id=action_id,
            entity_id=invoice.id,
            redirect_url=f"/invoices/{invoice.id}",
            message=(
                f"Invoice {invoice.invoice_number} created successfully! "
                f"Total: {format_inr(float(invoice.grand_total))}"
            ),
        )

    def _create(self, db: Session, data: dict, user_id: str):
        try:
            payload = InvoiceActionData.model_validate(data or {})
        except ValidationError as e:
            issues = _issues_from(e)
            raise _InvoiceActionFailed(f"{issues[0].field}: {issues[0].message}", issues)

        # Firm details are snapshotted onto the invoice
        user_settings = get_settings(db, user_id)
        if not user_settings or not user_settings.firm_name:
            raise _InvoiceActionFailed("User settings not found. Please configure firm details in settings.")

        if payload.customer_id:
            customer = get_owned_customer(db, user_id, payload.customer_id)
            if not customer:
                raise _InvoiceActionFailed("Customer not found")
        else:
            customer = Customer(
                user_id=user_id,
                name=payload.customer_name,
                phone=payload.customer_phone or None,
                email=payload.customer_email or None,
                address=payload.customer_address or None,
            )
            db.add(customer)
            db.flush()
            logger.info(f"Created customer {customer.id} from AI invoice for user {user_id}")

        try:
            return create_invoice(
                db,
                user_id,
                invoice_date=payload.invoice_date,
                customer_id=customer.id,
                customer_name=customer.name or payload.customer_name,
                customer_address=customer.address or payload.customer_address,
                customer_phone=customer.phone or payload.customer_phone,
                customer_email=customer.email or payload.customer_email,
                firm_name=user_settings.firm_name,
                firm_address=user_settings.firm_address,
                firm_phone=user_settings.firm_phone,
                firm_gstin=user_settings.firm_gstin,
                gst_percentage=payload.gst_percentage,
                items=[
                    {
                        "name": item.name,
                        "quantity": item.quantity,
                        "weight": item.weight,
                        "price_per_gram": item.price_per_gram,
                        "total": item.total,
                    }
                    for item in payload.items
                ],
            )
        except ConflictError as e:
            raise _InvoiceActionFailed(e.message)
