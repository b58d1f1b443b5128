"""Transcript assembly.

The transcript lists exactly the questions the user saw, in the order they saw
them: the navigation history followed by the current node. Option answers are
rendered with their localized labels; inline satellite answers follow their
parent question.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from intake_flow.engine.traversal import is_answered
from intake_flow.flows.models import Flow, Question
from intake_flow.wizard.payload import FormResponses, IntakeSubmission, TranscriptEntry
from intake_flow.wizard.session import WizardSession


def display_answer(question: Question, value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(display_answer(question, v) for v in value)
    label = question.option_label(value)
    if label is not None:
        return label
    if isinstance(value, str):
        return value.strip()
    return str(value)


def _walk(history: Sequence[str], current_node_id: Optional[str]) -> List[str]:
    seen: List[str] = []
    for node_id in list(history) + ([current_node_id] if current_node_id else []):
        if node_id not in seen:
            seen.append(node_id)
    return seen


def build_transcript(flow: Flow, history: Sequence[str], current_node_id: Optional[str],
                     answers: Mapping[str, Any]) -> List[Dict[str, str]]:
    entries: List[Dict[str, str]] = []
    for node_id in _walk(history, current_node_id):
        question = flow.nodes.get(node_id)
        if question is None or not is_answered(answers.get(node_id)):
            continue
        value = answers[node_id]
        entries.append({'question': question.prompt, 'answer': display_answer(question, value)})
        for inline in question.inline_fields:
            sat = answers.get(inline.key)
            if inline.is_visible(value) and is_answered(sat):
                entries.append({'question': inline.prompt, 'answer': str(sat).strip()})
    return entries


def split_full_name(full_name: str) -> Tuple[str, str]:
    parts = (full_name or '').strip().split(None, 1)
    if not parts:
        return '', ''
    return parts[0], parts[1] if len(parts) > 1 else ''


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def build_submission(session: WizardSession, flow: Flow, submitted_at: Optional[str] = None) -> IntakeSubmission:
    first_name, last_name = split_full_name(session.full_name)
    transcript = build_transcript(flow, session.history, session.current_node_id, session.answers)
    return IntakeSubmission(
        request_number=session.request_number,
        first_name=first_name,
        last_name=last_name,
        email=session.email,
        case_type=flow.case_type,
        language=session.language,
        form_responses=FormResponses(
            answers=dict(session.answers),
            additional_details=session.additional_details.strip(),
            transcript=[TranscriptEntry(**e) for e in transcript],
            submitted_at=submitted_at or utc_timestamp(),
        ),
    )


__all__ = ['display_answer', 'build_transcript', 'split_full_name', 'utc_timestamp', 'build_submission']
