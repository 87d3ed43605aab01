"""
Action executors and their registry.

An executor turns a confirmed AIAction's extracted_data into real records.
It is called ONLY by agent/state_machine.confirm_action, after the action
has moved to `executing`. Executors flush but never commit: the state
machine commits their writes together with the terminal status.

Adding an action type = writing an ActionExecutor and registering it.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from jewelshop.core.exceptions import UnknownActionTypeError

logger = logging.getLogger(__name__)


@dataclass
class ValidationIssue:
    field: str
    message: str
    severity: str = "error"  # error | warning

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "severity": self.severity}


@dataclass
class ActionResult:
    success: bool
    action_id: str
    message: str
    entity_id: Optional[str] = None
    redirect_url: Optional[str] = None
    errors: List[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Wire shape returned by POST /ai/execute-action."""
        body: Dict[str, Any] = {"success": self.success, "actionId": self.action_id, "message": self.message}
        if self.entity_id:
            body["entityId"] = self.entity_id
        if self.redirect_url:
            body["redirectUrl"] = self.redirect_url
        if self.errors:
            body["errors"] = [e.to_dict() for e in self.errors]
        return body


class ActionExecutor:
    """Base class. Subclasses set action_type and the audit names."""

    action_type: str = ""
    audit_action: str = ""
    audit_entity: str = ""

    def validate(self, db: Session, data: dict, user_id: str) -> Tuple[Optional[dict], List[ValidationIssue]]:
        """Check a proposed payload. Returns (normalized data or None, issues)."""
        raise NotImplementedError

    def execute(self, db: Session, data: dict, user_id: str, action_id: str) -> ActionResult:
        raise NotImplementedError


class ExecutorRegistry:
    def __init__(self):
        self._executors: Dict[str, ActionExecutor] = {}

    def register(self, executor: ActionExecutor) -> None:
        if not executor.action_type:
            raise ValueError("Executor must declare an action_type")
        self._executors[executor.action_type] = executor
        logger.debug(f"Registered executor for {executor.action_type}")

    def get(self, action_type: str) -> ActionExecutor:
        executor = self._executors.get(action_type)
        if executor is None:
            logger.warning(f"No executor registered for action type {action_type!r}")
            raise UnknownActionTypeError(f"Unknown action type: {action_type}")
        return executor

    def types(self) -> List[str]:
        return sorted(self._executors)


def build_default_registry() -> ExecutorRegistry:
    from jewelshop.agent.invoice_action import CreateInvoiceExecutor

    registry = ExecutorRegistry()
    registry.register(CreateInvoiceExecutor())
    return registry
