from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from jewelshop.schemas.common import (
    clean_str, require_text, check_email, non_negative_number, non_negative_int,
)


# ---------- Suppliers ----------

class SupplierCreate(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        return require_text(v, "Supplier name is required")

    @field_validator("contact_person", "phone", "address", "notes", mode="before")
    @classmethod
    def trim(cls, v):
        return clean_str(v)

    @field_validator("email", mode="before")
    @classmethod
    def email_format(cls, v):
        return check_email(v)


class SupplierUpdate(SupplierCreate):
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        return require_text(v, "Supplier name cannot be empty")


class SupplierResponse(BaseModel):
    id: str
    user_id: str
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------- Purchase invoices ----------

class PurchaseInvoiceCreate(BaseModel):
    invoice_number: Optional[str] = Field(default=None, validate_default=True)
    invoice_date: Optional[date] = Field(default=None, validate_default=True)
    amount: Optional[float] = Field(default=None, validate_default=True)
    purchase_number: Optional[str] = None
    supplier_id: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    number_of_items: Optional[int] = None
    notes: Optional[str] = None
    invoice_file_url: Optional[str] = None

    @field_validator("invoice_number", mode="before")
    @classmethod
    def invoice_number_required(cls, v):
        return require_text(v, "Invoice number is required")

    @field_validator("invoice_date", mode="before")
    @classmethod
    def invoice_date_required(cls, v):
        if v is None or v == "":
            raise ValueError("Invoice date is required")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def amount_required(cls, v):
        if v is None:
            raise ValueError("Amount is required")
        if v == "":
            raise ValueError("Invalid amount value")
        return non_negative_number(v, "Invalid amount value")

    @field_validator("number_of_items", mode="before")
    @classmethod
    def item_count(cls, v):
        return non_negative_int(v, "Invalid number of items")

    @field_validator("purchase_number", "supplier_id", "status", "payment_status", "notes", "invoice_file_url", mode="before")
    @classmethod
    def trim(cls, v):
        return clean_str(v)


class PurchaseInvoiceUpdate(BaseModel):
    """Partial update; same field rules as create for whatever is sent."""
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    amount: Optional[float] = None
    purchase_number: Optional[str] = None
    supplier_id: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    number_of_items: Optional[int] = None
    notes: Optional[str] = None
    invoice_file_url: Optional[str] = None

    @field_validator("invoice_number", mode="before")
    @classmethod
    def invoice_number_not_blank(cls, v):
        return require_text(v, "Invoice number cannot be empty")

    @field_validator("invoice_date", mode="before")
    @classmethod
    def invoice_date_not_blank(cls, v):
        if v is None or v == "":
            raise ValueError("Invoice date cannot be empty")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def amount_valid(cls, v):
        if v is None or v == "":
            raise ValueError("Invalid amount value")
        return non_negative_number(v, "Invalid amount value")

    @field_validator("number_of_items", mode="before")
    @classmethod
    def item_count(cls, v):
        return non_negative_int(v, "Invalid number of items")

    @field_validator("purchase_number", "supplier_id", "status", "payment_status", "notes", "invoice_file_url", mode="before")
    @classmethod
    def trim(cls, v):
        return clean_str(v)


class SupplierName(BaseModel):
    name: str

    class Config:
        from_attributes = True


class PurchaseInvoiceResponse(BaseModel):
    id: str
    user_id: str
    purchase_number: str
    invoice_number: str
    invoice_date: date
    supplier_id: Optional[str] = None
    amount: float
    status: str
    payment_status: str
    number_of_items: Optional[int] = None
    notes: Optional[str] = None
    invoice_file_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    supplier: Optional[SupplierName] = None

    class Config:
        from_attributes = True
