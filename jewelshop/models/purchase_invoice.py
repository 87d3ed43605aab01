from sqlalchemy import Column, String, Integer, ForeignKey, Numeric, Date, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from jewelshop.db.base import Base, generate_uuid


class PurchaseInvoice(Base):
    """A bill received from a supplier."""
    __tablename__ = "purchase_invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    purchase_number = Column(String(64), nullable=False)
    invoice_number = Column(String(128), nullable=False)  # supplier's bill number
    invoice_date = Column(Date, nullable=False)
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String(32), nullable=False, default="Received")
    payment_status = Column(String(32), nullable=False, default="Unpaid")
    number_of_items = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    invoice_file_url = Column(String(512), nullable=True)  # storage path in purchase-invoices bucket
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", backref="purchase_invoices")
