"""Supplier bill data read from an uploaded image (POST /ai/extract-bill).

camelCase on the wire, like the other AI payloads. The vision model's raw
JSON is validated against BillExtraction before anything is returned.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from jewelshop.schemas.common import EMAIL_RE

# Errors on these keys mean the image is probably not a bill at all
KEY_BILL_FIELDS = ("invoiceNumber", "amount", "invoiceDate")


class BillSupplier(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("email", mode="before")
    @classmethod
    def email_or_blank(cls, v):
        if v is None or v == "":
            return None
        if not isinstance(v, str) or not EMAIL_RE.match(v.strip()):
            raise ValueError("Invalid email")
        return v.strip()


class BillItem(BaseModel):
    name: str = Field(min_length=1)
    quantity: Optional[float] = Field(default=None, gt=0)
    rate: Optional[float] = Field(default=None, gt=0)
    amount: float = Field(gt=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BillExtraction(BaseModel):
    supplier: BillSupplier
    invoice_number: str = Field(min_length=1)
    invoice_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    amount: float = Field(gt=0)
    payment_status: Literal["Paid", "Unpaid", "Partially Paid"] = "Unpaid"

    items: List[BillItem] = Field(default_factory=list)
    number_of_items: Optional[int] = Field(default=None, gt=0)
    tax_amount: Optional[float] = None
    discount_amount: Optional[float] = None
    notes: Optional[str] = None

    confidence: float = Field(default=0.8, ge=0, le=1)
    detected_language: str = "unknown"

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Models send null for keys they could not read
        for key in ("paymentStatus", "items", "confidence", "detectedLanguage"):
            if data.get(key) is None:
                data.pop(key, None)
        if not data.get("numberOfItems"):
            items = data.get("items")
            data["numberOfItems"] = len(items) if isinstance(items, list) and items else None
        return data
