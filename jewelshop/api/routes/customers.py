"""Customers: owner-scoped CRUD with identity documents."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jewelshop.api.deps import get_db, get_current_user_id, get_blob_store, require_owned_paths
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.customer import Customer
from jewelshop.models.invoice import Invoice
from jewelshop.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from jewelshop.services.storage_service import IDENTITY_DOCS_BUCKET, remove_quietly

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_owned(db: Session, user_id: str, customer_id: str) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id, Customer.user_id == user_id).first()
    if not customer:
        raise BusinessError.not_found("Customer")
    return customer


@router.get("")
def list_customers(
    search: Optional[str] = Query(None),
    referred: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Newest first. search matches name; referred=true keeps customers with a referrer."""
    q = db.query(Customer).filter(Customer.user_id == user_id)
    if search:
        q = q.filter(Customer.name.ilike(f"%{search}%"))
    if referred == "true":
        q = q.filter(Customer.referred_by.isnot(None))
    rows = q.order_by(Customer.created_at.desc()).all()
    return {"data": [CustomerResponse.model_validate(c) for c in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    require_owned_paths(user_id, [data.identity_doc])
    customer = Customer(user_id=user_id, **data.model_dump())
    db.add(customer)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        # The identity document was uploaded before this call; don't orphan it
        if data.identity_doc:
            remove_quietly(blob_store, IDENTITY_DOCS_BUCKET, [data.identity_doc], user_id)
        raise BusinessError.server_error(e)
    db.refresh(customer)
    logger.info(f"Customer {customer.id} created for user {user_id}")
    return {"data": CustomerResponse.model_validate(customer)}


@router.get("/{customer_id}")
def get_customer(
    customer_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"data": CustomerResponse.model_validate(_get_owned(db, user_id, customer_id))}


@router.put("/{customer_id}")
def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    customer = _get_owned(db, user_id, customer_id)
    changes = data.model_dump(exclude_unset=True)
    require_owned_paths(user_id, [changes.get("identity_doc")])
    for key, value in changes.items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer_id} updated for user {user_id}")
    return {"data": CustomerResponse.model_validate(customer)}


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    customer = _get_owned(db, user_id, customer_id)
    invoice_count = (
        db.query(Invoice)
        .filter(Invoice.customer_id == customer_id, Invoice.user_id == user_id)
        .count()
    )
    if invoice_count:
        raise BusinessError.bad_request("Cannot delete customer with existing invoices")

    identity_doc = customer.identity_doc
    db.delete(customer)
    db.commit()
    remove_quietly(blob_store, IDENTITY_DOCS_BUCKET, [identity_doc], user_id)
    logger.info(f"Customer {customer_id} deleted for user {user_id}")
    return {"data": {"success": True, "message": "Customer deleted successfully"}}
