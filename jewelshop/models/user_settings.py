from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from jewelshop.db.base import Base


class UserSettings(Base):
    """
    One row per user: firm details, notification preferences, invoice
    numbering, label printing and photo options.

    invoice_next_number is only advanced through the compare-and-swap
    allocator in services/settings_service.py.
    """
    __tablename__ = "user_settings"

    user_id = Column(String(64), primary_key=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    # Firm Details
    firm_name = Column(String(255), nullable=True)
    firm_phone = Column(String(64), nullable=True)
    firm_address = Column(Text, nullable=True)
    firm_gstin = Column(String(32), nullable=True)
    firm_email = Column(String(255), nullable=True)
    firm_website = Column(String(255), nullable=True)
    firm_establishment_date = Column(Date, nullable=True)
    # Notification Settings
    notifications_email_enabled = Column(Boolean, nullable=True, default=True)
    notifications_push_enabled = Column(Boolean, nullable=True, default=True)
    notifications_sms_enabled = Column(Boolean, nullable=True, default=False)
    notifications_whatsapp_enabled = Column(Boolean, nullable=True, default=False)
    notifications_frequency = Column(String(16), nullable=True, default="instant")  # instant | daily | weekly
    notifications_quiet_hours_start = Column(String(8), nullable=True)  # "22:00"
    notifications_quiet_hours_end = Column(String(8), nullable=True)
    # Invoice Settings
    invoice_default_prefix = Column(String(16), nullable=True, default="INV-")
    invoice_next_number = Column(Integer, nullable=True, default=1)
    invoice_default_notes = Column(Text, nullable=True)
    invoice_custom_data = Column(JSON, nullable=True)
    # Label Settings
    label_type = Column(String(16), nullable=True, default="standard")  # standard | large | small
    label_copies = Column(Integer, nullable=True, default=1)
    label_include_product_name = Column(Boolean, nullable=True, default=True)
    label_include_price = Column(Boolean, nullable=True, default=True)
    label_include_barcode = Column(Boolean, nullable=True, default=True)
    label_include_date = Column(Boolean, nullable=True, default=False)
    label_include_metal = Column(Boolean, nullable=True, default=True)
    label_include_weight = Column(Boolean, nullable=True, default=True)
    label_include_purity = Column(Boolean, nullable=True, default=True)
    label_include_qr_code = Column(Boolean, nullable=True, default=False)
    # Photo Settings
    photo_compression_level = Column(String(16), nullable=True, default="medium")  # none | low | medium | high
