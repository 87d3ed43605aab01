from sqlalchemy import Column, String, Integer, ForeignKey, Numeric, Date, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from jewelshop.db.base import Base, generate_uuid


class Invoice(Base):
    """
    Sales invoice. Customer and firm details are copied at creation time
    so later edits to the customer or settings never rewrite old bills.
    """
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    invoice_number = Column(String(64), nullable=False)
    invoice_date = Column(Date, nullable=False)
    status = Column(String(32), nullable=False, default="finalized")
    customer_name_snapshot = Column(String(255), nullable=False)
    customer_address_snapshot = Column(Text, nullable=True)
    customer_phone_snapshot = Column(String(64), nullable=True)
    customer_email_snapshot = Column(String(255), nullable=True)
    firm_name_snapshot = Column(String(255), nullable=False)
    firm_address_snapshot = Column(Text, nullable=True)
    firm_phone_snapshot = Column(String(64), nullable=True)
    firm_gstin_snapshot = Column(String(32), nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    gst_percentage = Column(Numeric(5, 2), nullable=False, default=3)
    gst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    grand_total = Column(Numeric(14, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", backref="invoices")
    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan")


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    weight = Column(Numeric(12, 3), nullable=False)  # grams
    price_per_gram = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="items")
