from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jewelshop.schemas.common import clean_str, require_text, check_email

IDENTITY_TYPES = ("pan_card", "aadhaar_card", "others", "none")


class _CustomerFields(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    identity_type: Optional[str] = None
    identity_reference: Optional[str] = None
    identity_doc: Optional[str] = None
    referred_by: Optional[str] = None
    referral_notes: Optional[str] = None

    @field_validator(
        "phone", "address", "notes", "identity_reference", "identity_doc", "referred_by", "referral_notes",
        mode="before",
    )
    @classmethod
    def trim(cls, v):
        return clean_str(v)

    @field_validator("email", mode="before")
    @classmethod
    def email_format(cls, v):
        return check_email(v)

    @field_validator("identity_type", mode="before")
    @classmethod
    def known_identity_type(cls, v):
        v = clean_str(v)
        if v is not None and v not in IDENTITY_TYPES:
            raise ValueError("Invalid identity type")
        return v


class CustomerCreate(_CustomerFields):
    name: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        return require_text(v, "Customer name is required")

    @model_validator(mode="after")
    def reference_for_other_ids(self):
        if self.identity_type == "others" and not self.identity_reference:
            raise ValueError('Identity reference is required when identity type is "others"')
        return self


class CustomerUpdate(_CustomerFields):
    """Partial update; only fields present in the body are written."""
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_not_blank(cls, v):
        return require_text(v, "Customer name cannot be empty")

    @model_validator(mode="after")
    def reference_for_other_ids(self):
        if "identity_type" in self.model_fields_set and self.identity_type == "others" and not self.identity_reference:
            raise ValueError('Identity reference is required when identity type is "others"')
        return self


class CustomerResponse(BaseModel):
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    identity_type: Optional[str] = None
    identity_reference: Optional[str] = None
    identity_doc: Optional[str] = None
    referred_by: Optional[str] = None
    referral_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
