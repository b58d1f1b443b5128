"""Wizard state machine.

    basic-info -> case-type -> questionnaire (loops over flow nodes) -> wrap-up

`reduce(session, action, flows)` is pure: it returns a new WizardSession and
never performs I/O. Submission is a side effect owned by WizardController.
Navigation alone never clears answers.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Union

from intake_flow.content.store import normalize_language
from intake_flow.errors import AnswerValidationError, NavigationError
from intake_flow.flows.branches import END
from intake_flow.flows.models import CompletionMode, Flow
from intake_flow.engine.traversal import compute_next, current_question, validate_and_collect_errors
from intake_flow.wizard.session import WizardSession, WizardStep, new_session

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


@dataclass(frozen=True)
class SubmitBasicInfo:
    full_name: str
    email: str


@dataclass(frozen=True)
class SelectCaseType:
    case_type: str


@dataclass(frozen=True)
class Answer:
    key: str
    value: Any


@dataclass(frozen=True)
class SetAdditionalDetails:
    text: str


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class ChangeLanguage:
    language: str


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[SubmitBasicInfo, SelectCaseType, Answer, SetAdditionalDetails, Next, Back, ChangeLanguage, Reset]


def _message(flows: Mapping[str, Flow], key: str) -> str:
    for flow in flows.values():
        return flow.message(key)
    return key


def _active_flow(session: WizardSession, flows: Mapping[str, Flow]) -> Optional[Flow]:
    return flows.get(session.case_type) if session.case_type else None


def _submit_basic_info(session: WizardSession, action: SubmitBasicInfo, flows: Mapping[str, Flow]) -> WizardSession:
    full_name = (action.full_name or '').strip()
    email = (action.email or '').strip()
    errors: Dict[str, str] = {}
    if not full_name:
        errors['full_name'] = _message(flows, 'full_name_required')
    if not email:
        errors['email'] = _message(flows, 'email_required')
    elif not EMAIL_PATTERN.match(email):
        errors['email'] = _message(flows, 'email_invalid')
    if errors:
        return replace(session, full_name=full_name, email=email, errors=errors)
    return replace(session, full_name=full_name, email=email, errors={}, step=WizardStep.CASE_TYPE)


def _select_case_type(session: WizardSession, action: SelectCaseType, flows: Mapping[str, Flow]) -> WizardSession:
    flow = flows.get(action.case_type) if action.case_type else None
    if flow is None:
        return replace(session, errors={'case_type': _message(flows, 'case_type_required')})
    # Flows are independent graphs: answers from another case type must not leak.
    return replace(
        session,
        step=WizardStep.QUESTIONNAIRE,
        case_type=flow.case_type,
        current_node_id=flow.start,
        answers={},
        history=(),
        additional_details='',
        errors={},
        awaiting_direct_submit=False,
        notice=None,
    )


def _coerce_answer(flow: Flow, key: str, value: Any) -> Any:
    question = flow.nodes.get(key)
    if question is not None and question.kind == 'confirm' and isinstance(value, bool):
        return 'yes' if value else 'no'
    return value


def _answer(session: WizardSession, action: Answer, flows: Mapping[str, Flow]) -> WizardSession:
    flow = _active_flow(session, flows)
    question = current_question(flow, session.current_node_id) if flow else None
    if question is None:
        logger.warning("Ignoring answer for '%s': no active question", action.key)
        return session
    allowed = {question.id} | {f.key for f in question.inline_fields}
    if action.key not in allowed:
        logger.warning("Ignoring answer for '%s': current question is '%s'", action.key, question.id)
        return session
    answers = dict(session.answers)
    answers[action.key] = _coerce_answer(flow, action.key, action.value)
    errors = {k: v for k, v in session.errors.items() if k != action.key}
    return replace(session, answers=answers, errors=errors)


def _next(session: WizardSession, flows: Mapping[str, Flow]) -> WizardSession:
    if session.step != WizardStep.QUESTIONNAIRE or session.awaiting_direct_submit:
        return session
    flow = _active_flow(session, flows)
    if flow is None:
        return replace(session, step=WizardStep.CASE_TYPE)
    node_id = session.current_node_id
    errors = validate_and_collect_errors(flow, node_id, session.answers)
    if errors:
        return replace(session, errors=errors)
    try:
        target = compute_next(flow, node_id, session.answers)
    except (AnswerValidationError, NavigationError) as e:
        logger.error("Cannot advance from '%s' in '%s': %s", node_id, flow.case_type, e)
        return replace(session, errors={str(node_id): flow.message('unknown_question')})

    history = session.history + (node_id,)
    if target == END:
        if flow.completion == CompletionMode.DIRECT_SUBMIT:
            return replace(session, history=history, errors={}, awaiting_direct_submit=True)
        return replace(session, history=history, errors={}, step=WizardStep.WRAP_UP)
    return replace(session, history=history, current_node_id=target, errors={})


def _back(session: WizardSession, flows: Mapping[str, Flow]) -> WizardSession:
    if session.step == WizardStep.CASE_TYPE:
        return replace(session, step=WizardStep.BASIC_INFO, errors={})
    if session.step == WizardStep.QUESTIONNAIRE:
        if not session.history:
            return replace(session, step=WizardStep.CASE_TYPE, errors={}, awaiting_direct_submit=False)
        return replace(
            session,
            current_node_id=session.history[-1],
            history=session.history[:-1],
            errors={},
            awaiting_direct_submit=False,
        )
    if session.step == WizardStep.WRAP_UP:
        if session.history:
            return replace(session, step=WizardStep.QUESTIONNAIRE, current_node_id=session.history[-1],
                           history=session.history[:-1], errors={})
        flow = _active_flow(session, flows)
        return replace(session, step=WizardStep.QUESTIONNAIRE,
                       current_node_id=flow.start if flow else session.current_node_id, errors={})
    return session


def reduce(session: WizardSession, action: Action, flows: Mapping[str, Flow]) -> WizardSession:
    """Apply one user action. `flows` is the flow config for `session.language`."""
    if isinstance(action, SubmitBasicInfo):
        if session.step != WizardStep.BASIC_INFO:
            return session
        return _submit_basic_info(session, action, flows)
    if isinstance(action, SelectCaseType):
        if session.step != WizardStep.CASE_TYPE:
            return session
        return _select_case_type(session, action, flows)
    if isinstance(action, Answer):
        if session.step != WizardStep.QUESTIONNAIRE or session.awaiting_direct_submit:
            return session
        return _answer(session, action, flows)
    if isinstance(action, SetAdditionalDetails):
        return replace(session, additional_details=action.text or '')
    if isinstance(action, Next):
        return _next(session, flows)
    if isinstance(action, Back):
        return _back(session, flows)
    if isinstance(action, ChangeLanguage):
        # Node ids are shared across languages, so position and answers carry over.
        return replace(session, language=normalize_language(action.language), errors={})
    if isinstance(action, Reset):
        return new_session(session.language)
    raise TypeError(f"Unknown wizard action: {action!r}")


__all__ = [
    'EMAIL_PATTERN', 'SubmitBasicInfo', 'SelectCaseType', 'Answer', 'SetAdditionalDetails',
    'Next', 'Back', 'ChangeLanguage', 'Reset', 'Action', 'reduce',
]
