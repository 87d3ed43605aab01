from sqlalchemy import Column, String, Numeric, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from jewelshop.db.base import Base, generate_uuid


class StockItem(Base):
    """
    One physical piece of jewelry in the shop.

    Pieces are unique, so there is no quantity: an item is either in stock
    or sold (is_sold + sold_at).
    """
    __tablename__ = "stock_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    item_number = Column(String(64), nullable=False)
    category = Column(String(128), nullable=False)  # Ring, Necklace, Bangle...
    material = Column(String(128), nullable=False)  # Gold, Silver, Diamond...
    purity = Column(String(32), nullable=True)  # 22K, 18K, 925...
    weight = Column(Numeric(12, 3), nullable=False, default=0)  # grams
    description = Column(Text, nullable=True)
    supplier = Column(String(255), nullable=True)
    purchase_date = Column(Date, nullable=True)
    purchase_price = Column(Numeric(14, 2), nullable=False, default=0)
    image_urls = Column(JSON, nullable=True)  # storage paths in stock_item_images bucket
    is_sold = Column(Boolean, nullable=False, default=False)
    sold_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
