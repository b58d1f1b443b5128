"""Exception hierarchy for the intake flow engine.

Build-time failures (content and graph integrity) are fatal and surface when the
service starts. Runtime failures (validation, navigation, submission) are raised
to the wizard controller, which turns them into session errors.
"""
from __future__ import annotations

from typing import Dict, Optional


class IntakeFlowError(RuntimeError):
    pass


class ContentIntegrityError(IntakeFlowError):
    """A language bundle is missing text or disagrees with a flow shape."""


class FlowDefinitionError(IntakeFlowError):
    """A flow shape is not a well-formed finite graph."""


class NavigationError(IntakeFlowError):
    """A node id was looked up that does not exist in the active flow."""

    def __init__(self, node_id: str, case_type: Optional[str] = None):
        self.node_id = node_id
        self.case_type = case_type
        where = f" in flow '{case_type}'" if case_type else ""
        super().__init__(f"Unknown node '{node_id}'{where}")


class AnswerValidationError(IntakeFlowError):
    """Raised when advancing past a node whose answer does not validate."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__(f"Invalid answer(s): {', '.join(sorted(self.errors))}")


class SubmissionError(IntakeFlowError):
    """The intake endpoint could not record the request."""


class ConfirmationEmailError(IntakeFlowError):
    """The request was recorded but the confirmation email call failed."""


__all__ = [
    'IntakeFlowError', 'ContentIntegrityError', 'FlowDefinitionError', 'NavigationError',
    'AnswerValidationError', 'SubmissionError', 'ConfirmationEmailError',
]
