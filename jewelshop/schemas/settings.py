from datetime import date, datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from jewelshop.schemas.common import check_email


class SettingsUpdate(BaseModel):
    """
    Writable user settings. user_id and updated_at are managed server-side,
    so they are not fields here; unknown keys are dropped.
    """
    firm_name: Optional[str] = None
    firm_phone: Optional[str] = None
    firm_address: Optional[str] = None
    firm_gstin: Optional[str] = None
    firm_email: Optional[str] = None
    firm_website: Optional[str] = None
    firm_establishment_date: Optional[date] = None

    notifications_email_enabled: Optional[bool] = None
    notifications_push_enabled: Optional[bool] = None
    notifications_sms_enabled: Optional[bool] = None
    notifications_whatsapp_enabled: Optional[bool] = None
    notifications_frequency: Optional[Literal["instant", "daily", "weekly"]] = None
    notifications_quiet_hours_start: Optional[str] = None
    notifications_quiet_hours_end: Optional[str] = None

    invoice_default_prefix: Optional[str] = None
    invoice_next_number: Optional[int] = Field(default=None, ge=1)
    invoice_default_notes: Optional[str] = None
    invoice_custom_data: Optional[Dict[str, Any]] = None

    label_type: Optional[Literal["standard", "large", "small"]] = None
    label_copies: Optional[int] = Field(default=None, ge=1)
    label_include_product_name: Optional[bool] = None
    label_include_price: Optional[bool] = None
    label_include_barcode: Optional[bool] = None
    label_include_date: Optional[bool] = None
    label_include_metal: Optional[bool] = None
    label_include_weight: Optional[bool] = None
    label_include_purity: Optional[bool] = None
    label_include_qr_code: Optional[bool] = None

    photo_compression_level: Optional[Literal["none", "low", "medium", "high"]] = None

    @field_validator("firm_email", mode="before")
    @classmethod
    def email_format(cls, v):
        return check_email(v)

    @field_validator("firm_establishment_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v


class SettingsResponse(SettingsUpdate):
    user_id: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceNumberSet(BaseModel):
    number: Any = Field(default=None, validate_default=True)

    @field_validator("number", mode="before")
    @classmethod
    def positive_integer(cls, v):
        # bool is an int subclass; floats and numeric strings are rejected too
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            raise ValueError("Invalid invoice number. Must be a positive integer.")
        return v
