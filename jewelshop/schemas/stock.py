from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from jewelshop.schemas.common import clean_str, require_text, non_negative_number

STOCK_ACTIONS = ("mark_sold", "mark_unsold")


class StockItemCreate(BaseModel):
    # Field order sets which message wins when several fields are missing
    category: Optional[str] = Field(default=None, validate_default=True)
    material: Optional[str] = Field(default=None, validate_default=True)
    item_number: Optional[str] = Field(default=None, validate_default=True)
    weight: float = Field(default=0, validate_default=True)
    purchase_price: float = Field(default=0, validate_default=True)
    purity: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    image_urls: Optional[List[str]] = None

    @field_validator("category", mode="before")
    @classmethod
    def category_required(cls, v):
        return require_text(v, "Category is required")

    @field_validator("material", mode="before")
    @classmethod
    def material_required(cls, v):
        return require_text(v, "Material is required")

    @field_validator("item_number", mode="before")
    @classmethod
    def item_number_required(cls, v):
        return require_text(v, "Item number is required")

    @field_validator("weight", mode="before")
    @classmethod
    def weight_value(cls, v):
        return non_negative_number(v, "Invalid weight value")

    @field_validator("purchase_price", mode="before")
    @classmethod
    def price_value(cls, v):
        return non_negative_number(v, "Invalid purchase price value")

    @field_validator("purity", "description", "supplier", mode="before")
    @classmethod
    def trim(cls, v):
        return clean_str(v)

    @field_validator("purchase_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v


class StockItemUpdate(BaseModel):
    category: Optional[str] = None
    material: Optional[str] = None
    item_number: Optional[str] = None
    weight: Optional[float] = None
    purchase_price: Optional[float] = None
    purity: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    image_urls: Optional[List[str]] = None

    @field_validator("category", mode="before")
    @classmethod
    def category_not_blank(cls, v):
        return require_text(v, "Category cannot be empty")

    @field_validator("material", mode="before")
    @classmethod
    def material_not_blank(cls, v):
        return require_text(v, "Material cannot be empty")

    @field_validator("item_number", mode="before")
    @classmethod
    def item_number_not_blank(cls, v):
        return require_text(v, "Item number cannot be empty")

    @field_validator("weight", mode="before")
    @classmethod
    def weight_value(cls, v):
        return non_negative_number(v, "Invalid weight value")

    @field_validator("purchase_price", mode="before")
    @classmethod
    def price_value(cls, v):
        return non_negative_number(v, "Invalid purchase price value")

    @field_validator("purity", "description", "supplier", mode="before")
    @classmethod
    def trim(cls, v):
        return clean_str(v)

    @field_validator("purchase_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v


class StockAction(BaseModel):
    action: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("action", mode="before")
    @classmethod
    def action_required(cls, v):
        return require_text(v, "Action is required")


class StockItemResponse(BaseModel):
    id: str
    user_id: str
    item_number: str
    category: str
    material: str
    purity: Optional[str] = None
    weight: float
    description: Optional[str] = None
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: float
    image_urls: Optional[List[str]] = None
    is_sold: bool
    sold_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
