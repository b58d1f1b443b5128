"""Flow Traversal Engine.

Contract:
- current_question(flow, node_id) -> Question | None
- is_current_answer_valid(flow, node_id, answers) -> bool   (gating, enables "Next")
- validate_and_collect_errors(flow, node_id, answers) -> {field: message}
- compute_next(flow, node_id, answers) -> node id | END

compute_next never evaluates a branch on an answer that does not validate, and
never looks END up in the node map. Nodes with inline sub-fields use the
CollapsedInline branch, which always yields its fixed continuation node.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from intake_flow.errors import AnswerValidationError, FlowDefinitionError, NavigationError
from intake_flow.flows.branches import END
from intake_flow.flows.models import Flow, Question

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def is_answered(value: Any) -> bool:
    """Presence check: blank strings and empty lists are unanswered.

    Booleans and numbers count as explicit answers, so a stray boolean False is
    never mistaken for a missing answer. Choice questions store string tokens.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return any(is_answered(v) for v in value)
    return True


def current_question(flow: Flow, node_id: Optional[str]) -> Optional[Question]:
    question = flow.nodes.get(node_id) if node_id else None
    if question is None:
        logger.warning("Node '%s' not found in flow '%s' (%s)", node_id, flow.case_type, flow.language)
    return question


def is_current_answer_valid(flow: Flow, node_id: Optional[str], answers: Mapping[str, Any]) -> bool:
    question = current_question(flow, node_id)
    if question is None:
        return False
    if not question.required:
        return True
    return is_answered(answers.get(question.id))


def _shape_error(question: Question, value: Any) -> Optional[str]:
    """Return a message key when a present answer has the wrong shape for its kind."""
    if not is_answered(value):
        return None
    allowed = question.option_values()
    if question.kind in ('confirm', 'single'):
        if not isinstance(value, str) or value not in allowed:
            return 'invalid_option'
    elif question.kind == 'multi':
        values = [value] if isinstance(value, str) else list(value) if isinstance(value, (list, tuple)) else None
        if not values or any(v not in allowed for v in values):
            return 'invalid_option'
    elif question.kind == 'date':
        text = value.strip() if isinstance(value, str) else ''
        if not _ISO_DATE.match(text):
            return 'invalid_date'
        try:
            date.fromisoformat(text)
        except ValueError:
            return 'invalid_date'
    elif question.kind in ('text', 'textarea'):
        if not isinstance(value, str):
            return 'invalid_text'
    return None


def validate_and_collect_errors(flow: Flow, node_id: Optional[str], answers: Mapping[str, Any]) -> Dict[str, str]:
    """Strict check run when advancing.

    The main answer fails fast; only once it passes are the visible inline
    satellite fields checked, and every failing satellite is reported together.
    """
    question = current_question(flow, node_id)
    if question is None:
        return {str(node_id): flow.message('unknown_question')}

    value = answers.get(question.id)
    if question.required and not is_answered(value):
        return {question.id: flow.message('required')}
    bad_shape = _shape_error(question, value)
    if bad_shape:
        return {question.id: flow.message(bad_shape)}

    errors: Dict[str, str] = {}
    for inline in question.inline_fields:
        if not inline.is_visible(value):
            continue
        sat = answers.get(inline.key)
        if inline.required and not is_answered(sat):
            errors[inline.key] = flow.message('required')
        elif is_answered(sat) and not isinstance(sat, str):
            errors[inline.key] = flow.message('invalid_text')
    return errors


def compute_next(flow: Flow, node_id: str, answers: Mapping[str, Any]) -> str:
    question = flow.nodes.get(node_id)
    if question is None:
        raise NavigationError(node_id, flow.case_type)
    errors = validate_and_collect_errors(flow, node_id, answers)
    if errors:
        raise AnswerValidationError(errors)
    target = question.branch.resolve(answers)
    if target != END and target not in flow.nodes:
        raise FlowDefinitionError(f"[{flow.case_type}] '{node_id}' resolved to unknown node '{target}'")
    return target


def replay_path(flow: Flow, answers: Mapping[str, Any]) -> List[str]:
    """Walk from start following stored answers.

    Stops at END or at the first node whose answer does not validate; that node
    is included as the last element (the frontier).
    """
    path: List[str] = []
    node_id = flow.start
    while node_id != END:
        if node_id in path:
            raise FlowDefinitionError(f"[{flow.case_type}] cycle at '{node_id}'")
        path.append(node_id)
        try:
            node_id = compute_next(flow, node_id, answers)
        except AnswerValidationError:
            break
    return path


def history_matches(flow: Flow, history: Sequence[str], current: Optional[str], answers: Mapping[str, Any]) -> bool:
    """True when replaying `history` from start with `answers` lands on `current`.

    After the last node has been answered and END reached, `current` stays on
    that last node, which is also the top of the history.
    """
    expected = flow.start
    for node_id in history:
        if node_id != expected:
            return False
        try:
            expected = compute_next(flow, node_id, answers)
        except (AnswerValidationError, NavigationError):
            return False
    if expected == END:
        return bool(history) and current == history[-1]
    return current == expected


__all__ = [
    'END', 'is_answered', 'current_question', 'is_current_answer_valid',
    'validate_and_collect_errors', 'compute_next', 'replay_path', 'history_matches',
]
