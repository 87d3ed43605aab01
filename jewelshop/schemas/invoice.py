from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jewelshop.schemas.common import clean_str, require_text


class InvoiceItemIn(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True)
    quantity: int = 1
    weight: float = 0
    price_per_gram: float = 0
    total: Optional[float] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        return require_text(v, "All items must have a name")

    @model_validator(mode="after")
    def item_rules(self):
        if self.quantity <= 0:
            raise ValueError("All items must have quantity > 0")
        if self.weight <= 0:
            raise ValueError("All items must have weight > 0")
        if self.price_per_gram < 0:
            raise ValueError("Price per gram cannot be negative")
        if self.total is None:
            self.total = round(self.weight * self.price_per_gram, 2)
        return self


class InvoiceCreate(BaseModel):
    customer_name_snapshot: Optional[str] = Field(default=None, validate_default=True)
    firm_name_snapshot: Optional[str] = Field(default=None, validate_default=True)
    invoice_date: Optional[date] = Field(default=None, validate_default=True)
    items: Optional[List[InvoiceItemIn]] = Field(default=None, validate_default=True)
    customer_id: Optional[str] = None
    customer_address_snapshot: Optional[str] = None
    customer_phone_snapshot: Optional[str] = None
    customer_email_snapshot: Optional[str] = None
    firm_address_snapshot: Optional[str] = None
    firm_phone_snapshot: Optional[str] = None
    firm_gstin_snapshot: Optional[str] = None
    gst_percentage: float = Field(default=3, ge=0, le=100)
    # Computed from items when omitted
    subtotal: Optional[float] = None
    gst_amount: Optional[float] = None
    grand_total: Optional[float] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("customer_name_snapshot", mode="before")
    @classmethod
    def customer_name_required(cls, v):
        return require_text(v, "Customer name is required")

    @field_validator("firm_name_snapshot", mode="before")
    @classmethod
    def firm_name_required(cls, v):
        return require_text(v, "Firm name is required")

    @field_validator("invoice_date", mode="before")
    @classmethod
    def invoice_date_required(cls, v):
        if v is None or v == "":
            raise ValueError("Invoice date is required")
        return v

    @field_validator("items", mode="before")
    @classmethod
    def items_required(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v

    @field_validator(
        "customer_id", "customer_address_snapshot", "customer_phone_snapshot", "customer_email_snapshot",
        "firm_address_snapshot", "firm_phone_snapshot", "firm_gstin_snapshot", "notes", "status",
        mode="before",
    )
    @classmethod
    def trim(cls, v):
        return clean_str(v)

    @model_validator(mode="after")
    def amounts_not_negative(self):
        for amount in (self.subtotal, self.gst_amount, self.grand_total):
            if amount is not None and amount < 0:
                raise ValueError("Amounts cannot be negative")
        return self


class InvoiceItemResponse(BaseModel):
    id: str
    name: str
    quantity: int
    weight: float
    price_per_gram: float
    total: float

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: str
    user_id: str
    customer_id: Optional[str] = None
    invoice_number: str
    invoice_date: date
    status: str
    customer_name_snapshot: str
    customer_address_snapshot: Optional[str] = None
    customer_phone_snapshot: Optional[str] = None
    customer_email_snapshot: Optional[str] = None
    firm_name_snapshot: str
    firm_address_snapshot: Optional[str] = None
    firm_phone_snapshot: Optional[str] = None
    firm_gstin_snapshot: Optional[str] = None
    subtotal: float
    gst_percentage: float
    gst_amount: float
    grand_total: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[InvoiceItemResponse] = []

    class Config:
        from_attributes = True
