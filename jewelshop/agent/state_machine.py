"""
AIAction state machine and the confirmation flow.

    awaiting_confirmation -> executing -> completed | failed

Every transition is ONE conditional UPDATE filtered on id, owner and the
expected current status, with the affected row count checked. Two
concurrent confirmations of the same action therefore cannot both reach
`executing`: the loser matches zero rows and gets InvalidStateError.

Transaction layout of confirm_action:
    1. commit  awaiting_confirmation -> executing
    2. executor writes (flushed, not committed)
    3. commit  executor writes + executing -> completed     (success)
       or rollback executor writes, commit executing -> failed (any failure,
       including a failed completion commit)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update, func
from sqlalchemy.orm import Session

from jewelshop.agent.executor import ActionResult, ExecutorRegistry
from jewelshop.core.audit import AuditLog
from jewelshop.core.exceptions import (
    ActionExecutionError, InvalidStateError, NotFoundError, UnknownActionTypeError,
)
from jewelshop.models.ai_action import AIAction

logger = logging.getLogger(__name__)

AWAITING_CONFIRMATION = "awaiting_confirmation"
EXECUTING = "executing"
COMPLETED = "completed"
FAILED = "failed"

TERMINAL_STATES = (COMPLETED, FAILED)

ALLOWED_TRANSITIONS = {
    AWAITING_CONFIRMATION: (EXECUTING,),
    EXECUTING: (COMPLETED, FAILED),
}

EXECUTE_ROUTE = "/ai/execute-action"


def transition(db: Session, action_id: str, user_id: str, expected: str, new: str, **fields) -> None:
    """
    Move an action from `expected` to `new` with a single conditional UPDATE.

    Raises InvalidStateError if no row matched (wrong owner, already moved,
    or gone). Does not commit.
    """
    if new not in ALLOWED_TRANSITIONS.get(expected, ()):
        raise InvalidStateError(f"Illegal action transition {expected} -> {new}")

    values = {"status": new, "updated_at": func.now(), **fields}
    result = db.execute(
        update(AIAction)
        .where(
            AIAction.id == action_id,
            AIAction.user_id == user_id,
            AIAction.status == expected,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"Action {action_id} transition {expected} -> {new} matched {result.rowcount} rows")
        raise InvalidStateError("Action not in confirmable state")
    logger.info(f"Action {action_id}: {expected} -> {new}")


def _finish_failed(db: Session, action_id: str, user_id: str, error_message: str) -> None:
    db.rollback()  # discard anything the executor wrote
    transition(
        db, action_id, user_id, EXECUTING, FAILED,
        error_message=error_message,
        entity_id=None,
        executed_at=datetime.now(timezone.utc),
    )
    db.commit()


def _audit_failure(user_id, action_id, action_type, error, request_id):
    AuditLog.record(user_id, "ai_action_execute", "ai_action", action_id,
                    {"actionType": action_type, "error": error},
                    success=False, request_id=request_id, route=EXECUTE_ROUTE)


def confirm_action(
    db: Session,
    action_id: str,
    user_id: str,
    registry: ExecutorRegistry,
    request_id: Optional[str] = None,
) -> ActionResult:
    """
    Run a proposed action after the owner confirmed it.

    Returns the executor's result (success or domain failure). Raises
    NotFoundError / InvalidStateError before any mutation, UnknownActionTypeError
    and ActionExecutionError after marking the action failed.
    """
    action = (
        db.query(AIAction)
        .filter(AIAction.id == action_id, AIAction.user_id == user_id)
        .first()
    )
    if not action:
        logger.info(f"Action {action_id} not found for user {user_id}")
        raise NotFoundError("Action not found")
    if action.status != AWAITING_CONFIRMATION:
        logger.info(f"Action {action_id} confirm rejected: status is {action.status}")
        raise InvalidStateError("Action not in confirmable state")

    action_type = action.action_type
    data = dict(action.extracted_data or {})

    try:
        transition(db, action_id, user_id, AWAITING_CONFIRMATION, EXECUTING)
        db.commit()
    except InvalidStateError:
        db.rollback()
        raise

    try:
        executor = registry.get(action_type)
        result = executor.execute(db, data, user_id, action_id)
    except UnknownActionTypeError as e:
        _finish_failed(db, action_id, user_id, e.message)
        _audit_failure(user_id, action_id, action_type, e.message, request_id)
        raise
    except Exception as e:
        logger.error(f"Error executing action {action_id}: {e}", exc_info=True)
        _finish_failed(db, action_id, user_id, str(e) or type(e).__name__)
        _audit_failure(user_id, action_id, action_type, str(e), request_id)
        raise ActionExecutionError()

    if result.success:
        try:
            transition(
                db, action_id, user_id, EXECUTING, COMPLETED,
                entity_id=result.entity_id,
                error_message=None,
                executed_at=datetime.now(timezone.utc),
            )
            # Single atomic commit: business records + terminal status
            db.commit()
        except Exception as e:
            logger.error(f"Error committing action {action_id}: {e}", exc_info=True)
            _finish_failed(db, action_id, user_id, str(e) or type(e).__name__)
            _audit_failure(user_id, action_id, action_type, str(e), request_id)
            raise ActionExecutionError()
        logger.info(f"Action {action_id} completed, entity {result.entity_id}")
    else:
        _finish_failed(db, action_id, user_id, result.message)
        logger.info(f"Action {action_id} failed: {result.message}")

    AuditLog.record(
        user_id,
        executor.audit_action or action_type,
        executor.audit_entity or "ai_action",
        result.entity_id,
        {"aiActionId": action_id, "message": result.message},
        success=result.success,
        request_id=request_id,
        route=EXECUTE_ROUTE,
    )
    return result
