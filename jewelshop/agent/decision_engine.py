"""
Decision Engine: validation and proposal of AI actions.

THIS MODULE CREATES PROPOSALS, NOT EXECUTIONS.

Flow:
1. Chat front end extracts structured data from the conversation
2. propose_action validates it with the executor's own rules and stores an
   AIAction in `awaiting_confirmation`
3. Owner reviews the proposal and confirms it
4. Only THEN does agent/state_machine.confirm_action run the executor
"""
import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from jewelshop.agent.executor import ExecutorRegistry, ValidationIssue
from jewelshop.agent.state_machine import AWAITING_CONFIRMATION
from jewelshop.core.exceptions import InvalidInputError
from jewelshop.models.ai_action import AIAction

logger = logging.getLogger(__name__)


def propose_action(
    db: Session,
    user_id: str,
    action_type: str,
    extracted_data: dict,
    registry: ExecutorRegistry,
) -> Tuple[AIAction, List[ValidationIssue]]:
    """
    Store a validated proposal. Returns (action, warnings).

    Raises UnknownActionTypeError for unregistered types and InvalidInputError
    (first blocking issue) when the payload does not validate.
    """
    executor = registry.get(action_type)
    normalized, issues = executor.validate(db, extracted_data, user_id)

    errors = [issue for issue in issues if issue.severity == "error"]
    if errors or normalized is None:
        first = errors[0] if errors else ValidationIssue(field="general", message="Invalid action data")
        logger.info(f"Rejected {action_type} proposal for user {user_id}: {first.field}: {first.message}")
        raise InvalidInputError(f"{first.field}: {first.message}" if first.field != "general" else first.message)

    action = AIAction(
        user_id=user_id,
        action_type=action_type,
        extracted_data=normalized,
        status=AWAITING_CONFIRMATION,
    )
    db.add(action)
    db.commit()
    db.refresh(action)

    warnings = [issue for issue in issues if issue.severity == "warning"]
    logger.info(f"Proposed action {action.id} ({action_type}) for user {user_id}, {len(warnings)} warning(s)")
    return action, warnings
