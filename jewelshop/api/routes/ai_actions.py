"""
AI actions: proposal, listing and confirmation.

POST /ai/actions stores a proposal; nothing runs until the owner calls
POST /ai/execute-action with its id.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jewelshop.agent.decision_engine import propose_action
from jewelshop.agent.executor import ExecutorRegistry
from jewelshop.agent.state_machine import confirm_action
from jewelshop.api.deps import get_db, get_current_user_id, get_action_registry, get_request_id
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.ai_action import AIAction
from jewelshop.schemas.ai_action import ActionProposal, ExecuteActionRequest, AIActionResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/actions", status_code=status.HTTP_201_CREATED)
def create_action(
    data: ActionProposal,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    registry: ExecutorRegistry = Depends(get_action_registry),
):
    action, warnings = propose_action(db, user_id, data.action_type, data.extracted_data, registry)
    return {
        "data": AIActionResponse.model_validate(action),
        "warnings": [w.to_dict() for w in warnings],
    }


@router.get("/actions")
def list_actions(
    action_status: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    q = db.query(AIAction).filter(AIAction.user_id == user_id)
    if action_status:
        q = q.filter(AIAction.status == action_status)
    rows = q.order_by(AIAction.created_at.desc()).all()
    return {"data": [AIActionResponse.model_validate(a) for a in rows]}


@router.get("/actions/{action_id}")
def get_action(
    action_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    action = db.query(AIAction).filter(AIAction.id == action_id, AIAction.user_id == user_id).first()
    if not action:
        raise BusinessError.not_found("Action")
    return {"data": AIActionResponse.model_validate(action)}


@router.post("/execute-action")
def execute_action(
    data: ExecuteActionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    registry: ExecutorRegistry = Depends(get_action_registry),
    request_id: str = Depends(get_request_id),
):
    """
    Confirm and run an action. Always answers 200 with the ActionResult once
    the action reached `executing`, whether it completed or failed; errors
    before that (unknown id, wrong state) come back as {"error": ...}.
    """
    result = confirm_action(db, data.actionId, user_id, registry, request_id=request_id)
    return result.to_dict()
