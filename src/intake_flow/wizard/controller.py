"""Wizard Controller: owns one session, dispatches actions, performs submission."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from intake_flow.errors import ConfirmationEmailError, IntakeFlowError, SubmissionError
from intake_flow.flows.builder import build_all_flows
from intake_flow.flows.models import CompletionMode, Flow, Question
from intake_flow.engine.traversal import current_question, is_current_answer_valid
from intake_flow.wizard.reducer import Action, Next, Reset, reduce
from intake_flow.wizard.session import WizardSession, WizardStep, new_session
from intake_flow.wizard.transcript import build_submission

logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    SUBMITTED = 'submitted'
    SAVED_UNCONFIRMED = 'saved_unconfirmed'
    FAILED = 'failed'


@dataclass
class SubmissionOutcome:
    status: SubmissionStatus
    message: str
    request_number: Optional[str] = None
    dialog: str = 'thank-you'
    transcript: List[Dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != SubmissionStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'message': self.message,
            'request_number': self.request_number,
            'dialog': self.dialog,
            'transcript': self.transcript,
        }


class WizardController:
    def __init__(self, client: Any = None, flows_by_language: Optional[Mapping[str, Mapping[str, Flow]]] = None,
                 language: Optional[str] = None, session: Optional[WizardSession] = None):
        self.client = client
        self.flows_by_language = flows_by_language or build_all_flows()
        self.session = session or new_session(language)

    @property
    def flows(self) -> Mapping[str, Flow]:
        return self.flows_by_language[self.session.language]

    @property
    def flow(self) -> Optional[Flow]:
        return self.flows.get(self.session.case_type) if self.session.case_type else None

    def current_question(self) -> Optional[Question]:
        if self.session.step != WizardStep.QUESTIONNAIRE or self.flow is None:
            return None
        return current_question(self.flow, self.session.current_node_id)

    def can_advance(self) -> bool:
        if self.session.step != WizardStep.QUESTIONNAIRE or self.flow is None:
            return False
        return is_current_answer_valid(self.flow, self.session.current_node_id, self.session.answers)

    def dispatch(self, action: Action) -> Optional[SubmissionOutcome]:
        """Apply an action. Returns an outcome when the action triggered submission."""
        before = self.session.step
        self.session = reduce(self.session, action, self.flows)
        if self.session.step != before:
            logger.info("wizard %s: %s -> %s", self.session.request_number, before.value, self.session.step.value)
        if isinstance(action, Next) and self.session.awaiting_direct_submit:
            return self.submit()
        return None

    def ready_to_submit(self) -> bool:
        if self.flow is None:
            return False
        if self.flow.completion == CompletionMode.DIRECT_SUBMIT:
            return self.session.awaiting_direct_submit
        return self.session.step == WizardStep.WRAP_UP

    def submit(self) -> SubmissionOutcome:
        """Send the intake, then the confirmation email.

        On intake failure the session is kept so the user can retry. An email
        failure still counts as recorded and resets the session.
        """
        flow = self.flow
        if flow is None or not self.ready_to_submit():
            raise IntakeFlowError("Nothing to submit: the questionnaire is not complete")
        if self.client is None:
            raise IntakeFlowError("No intake client configured")

        submission = build_submission(self.session, flow)
        transcript = [e.model_dump() for e in submission.form_responses.transcript]
        dialog = 'other-confirmation' if flow.completion == CompletionMode.DIRECT_SUBMIT else 'thank-you'
        try:
            request_number = self.client.submit_intake(submission)
        except SubmissionError as e:
            msg = flow.message('submit_failed')
            logger.warning("Submission of %s failed: %s", self.session.request_number, e)
            self.session = replace(self.session, errors={'submit': msg}, notice=msg)
            return SubmissionOutcome(SubmissionStatus.FAILED, msg, self.session.request_number, dialog, transcript)

        status = SubmissionStatus.SUBMITTED
        msg = flow.message('submitted')
        if flow.send_confirmation:
            try:
                self.client.send_confirmation(request_number, self.session.language)
            except ConfirmationEmailError as e:
                logger.warning("Intake %s saved but unconfirmed: %s", request_number, e)
                status = SubmissionStatus.SAVED_UNCONFIRMED
                msg = flow.message('saved_unconfirmed')

        self.session = reduce(self.session, Reset(), self.flows)
        return SubmissionOutcome(status, msg, request_number, dialog, transcript)

    def view(self) -> Dict[str, Any]:
        """Render-ready snapshot of the session for the UI layer."""
        question = self.current_question()
        data = self.session.to_dict()
        data['question'] = question.to_dict() if question else None
        data['can_advance'] = self.can_advance()
        data['ready_to_submit'] = self.ready_to_submit()
        data['flow_title'] = self.flow.title if self.flow else None
        return data


__all__ = ['SubmissionStatus', 'SubmissionOutcome', 'WizardController']
