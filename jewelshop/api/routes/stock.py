"""Stock: one row per physical piece, with sold / unsold actions."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import update, func
from sqlalchemy.orm import Session

from jewelshop.api.deps import get_db, get_current_user_id, get_blob_store, require_owned_paths
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.stock_item import StockItem
from jewelshop.schemas.stock import (
    StockItemCreate, StockItemUpdate, StockItemResponse, StockAction, STOCK_ACTIONS,
)
from jewelshop.services.storage_service import STOCK_IMAGES_BUCKET, remove_quietly

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_owned(db: Session, user_id: str, item_id: str) -> StockItem:
    item = db.query(StockItem).filter(StockItem.id == item_id, StockItem.user_id == user_id).first()
    if not item:
        raise BusinessError.not_found("Stock item")
    return item


@router.get("")
def list_stock(
    sold: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """sold=true -> sold pieces only; any other value -> in stock only; absent -> all."""
    q = db.query(StockItem).filter(StockItem.user_id == user_id)
    if sold is not None:
        q = q.filter(StockItem.is_sold == (sold == "true"))
    rows = q.order_by(StockItem.created_at.desc()).all()
    return {"data": [StockItemResponse.model_validate(i) for i in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_stock_item(
    data: StockItemCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    require_owned_paths(user_id, data.image_urls or [])
    item = StockItem(user_id=user_id, is_sold=False, **data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Stock item {item.id} ({item.item_number}) created for user {user_id}")
    return {"data": StockItemResponse.model_validate(item)}


@router.get("/{item_id}")
def get_stock_item(
    item_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"data": StockItemResponse.model_validate(_get_owned(db, user_id, item_id))}


@router.put("/{item_id}")
def update_stock_item(
    item_id: str,
    data: StockItemUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    item = _get_owned(db, user_id, item_id)
    changes = data.model_dump(exclude_unset=True)
    require_owned_paths(user_id, changes.get("image_urls") or [])
    for column in ("weight", "purchase_price"):
        if column in changes and changes[column] is None:
            changes[column] = 0

    old_images = list(item.image_urls or [])
    for key, value in changes.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)

    if "image_urls" in changes:
        dropped = [p for p in old_images if p not in (item.image_urls or [])]
        remove_quietly(blob_store, STOCK_IMAGES_BUCKET, dropped, user_id)
    return {"data": StockItemResponse.model_validate(item)}


@router.delete("/{item_id}")
def delete_stock_item(
    item_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    item = _get_owned(db, user_id, item_id)
    images = list(item.image_urls or [])
    db.delete(item)
    db.commit()
    remove_quietly(blob_store, STOCK_IMAGES_BUCKET, images, user_id)
    logger.info(f"Stock item {item_id} deleted for user {user_id}")
    return {"data": {"success": True, "message": "Stock item deleted successfully"}}


@router.post("/{item_id}/actions")
def stock_item_action(
    item_id: str,
    data: StockAction,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """mark_sold / mark_unsold. Repeating the current state is an error, not a no-op."""
    item = _get_owned(db, user_id, item_id)
    if data.action not in STOCK_ACTIONS:
        raise BusinessError.bad_request(
            f"Invalid action: {data.action}. Valid actions are: {', '.join(STOCK_ACTIONS)}"
        )

    mark_sold = data.action == "mark_sold"
    # Conditional update: only flips when the piece is in the opposite state
    result = db.execute(
        update(StockItem)
        .where(StockItem.id == item_id, StockItem.user_id == user_id, StockItem.is_sold == (not mark_sold))
        .values(
            is_sold=mark_sold,
            sold_at=datetime.now(timezone.utc) if mark_sold else None,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        state = "sold" if mark_sold else "unsold"
        raise BusinessError.bad_request(f"Stock item is already marked as {state}")

    db.commit()
    db.refresh(item)
    logger.info(f"Stock item {item_id}: {data.action} by user {user_id}")
    return {"data": StockItemResponse.model_validate(item)}
