"""Supplier bill reading: photo or PDF in, purchase-invoice fields out.

Nothing is saved here. The front end pre-fills the purchase invoice form
with the result and the owner submits it through /purchases/invoices.
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from jewelshop.ai.groq_client import AIServiceBusy, AIServiceUnavailable, UnreadableResponse
from jewelshop.api.deps import get_current_user_id, get_bill_reader, get_request_id
from jewelshop.core.audit import AuditLog
from jewelshop.core.config import settings
from jewelshop.core.exceptions import BusinessError
from jewelshop.schemas.bill import BillExtraction, KEY_BILL_FIELDS

logger = logging.getLogger(__name__)
router = APIRouter()

ROUTE = "/ai/extract-bill"
ALLOWED_BILL_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "application/pdf")

NOT_A_BILL = (
    "This image does not appear to be a valid purchase bill or invoice. "
    "Please upload a clear photo of an invoice that includes: invoice number, date, and amount."
)
INCOMPLETE_BILL = (
    "Could not extract all required information from the bill. "
    "Please ensure the image is clear and contains all invoice details."
)


def _error_details(exc: ValidationError) -> list:
    return [{"path": list(e["loc"]), "message": e["msg"]} for e in exc.errors()]


@router.post("/extract-bill")
async def extract_bill(
    image: UploadFile = File(None),
    user_id: str = Depends(get_current_user_id),
    reader=Depends(get_bill_reader),
    request_id: str = Depends(get_request_id),
):
    if image is None:
        raise BusinessError.bad_request("Image file is required")

    too_large = "Image file too large. Maximum size is 10MB."
    if image.size is not None and image.size > settings.MAX_BILL_IMAGE_BYTES:
        raise BusinessError.bad_request(too_large)
    if image.content_type not in ALLOWED_BILL_TYPES:
        raise BusinessError.bad_request("Invalid file type. Only JPG, PNG, WebP, and PDF are allowed.")

    content = await image.read()
    if len(content) > settings.MAX_BILL_IMAGE_BYTES:
        raise BusinessError.bad_request(too_large)

    logger.info(f"Reading bill {image.filename} ({len(content)} bytes, {image.content_type}) for user {user_id}")
    try:
        raw = reader.read_bill(content, image.content_type)
    except AIServiceBusy:
        raise BusinessError.rate_limit_exceeded("AI service is busy. Please try again in a moment.")
    except AIServiceUnavailable as e:
        logger.warning(f"Bill reading unavailable for user {user_id}: {e}")
        raise BusinessError.service_unavailable("Bill reading is temporarily unavailable. Please try again later.")
    except UnreadableResponse as e:
        AuditLog.record(user_id, "bill_extraction", "bill_extraction", None,
                        {"fileName": image.filename, "error": str(e)},
                        success=False, request_id=request_id, route=ROUTE)
        raise BusinessError.server_error(detail=str(e))

    try:
        bill = BillExtraction.model_validate(raw)
    except ValidationError as e:
        details = _error_details(e)
        not_a_bill = any(key in d["path"] for d in details for key in KEY_BILL_FIELDS)
        logger.warning(f"Bill {image.filename} failed validation for user {user_id}: {details}")
        AuditLog.record(user_id, "bill_extraction", "bill_extraction", None,
                        {"fileName": image.filename, "validationErrors": details},
                        success=False, request_id=request_id, route=ROUTE)
        return JSONResponse(
            status_code=422,
            content={
                "error": NOT_A_BILL if not_a_bill else INCOMPLETE_BILL,
                "code": "INVALID_BILL_IMAGE",
                "details": details,
            },
        )

    AuditLog.record(user_id, "bill_extraction", "bill_extraction", None,
                    {"fileName": image.filename, "supplierName": bill.supplier.name,
                     "invoiceNumber": bill.invoice_number, "confidence": bill.confidence},
                    request_id=request_id, route=ROUTE)
    logger.info(f"Bill {bill.invoice_number} from {bill.supplier.name} read for user {user_id}")

    return {"success": True, "data": bill.model_dump(by_alias=True, exclude_none=True)}
