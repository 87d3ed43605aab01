from jewelshop.models.customer import Customer
from jewelshop.models.supplier import Supplier
from jewelshop.models.purchase_invoice import PurchaseInvoice
from jewelshop.models.stock_item import StockItem
from jewelshop.models.invoice import Invoice, InvoiceItem
from jewelshop.models.user_settings import UserSettings
from jewelshop.models.ai_action import AIAction
from jewelshop.models.chat import ChatSession, ChatMessage
from jewelshop.models.voice_transcription import VoiceTranscription
from jewelshop.models.audit_log import AuditLogEntry

__all__ = [
    "Customer", "Supplier", "PurchaseInvoice", "StockItem", "Invoice", "InvoiceItem",
    "UserSettings", "AIAction", "ChatSession", "ChatMessage", "VoiceTranscription", "AuditLogEntry",
]
