from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from intake_flow.content.store import DEFAULT_LANGUAGE, normalize_language


class WizardStep(str, Enum):
    BASIC_INFO = 'basic-info'
    CASE_TYPE = 'case-type'
    QUESTIONNAIRE = 'questionnaire'
    WRAP_UP = 'wrap-up'


def generate_request_number() -> str:
    """Client-side reference shown to the user, e.g. 'lr-482913'."""
    return f"lr-{random.randint(100000, 999999)}"


@dataclass(frozen=True)
class WizardSession:
    """One in-progress intake. Every action produces a new value."""
    step: WizardStep = WizardStep.BASIC_INFO
    language: str = DEFAULT_LANGUAGE
    full_name: str = ''
    email: str = ''
    case_type: Optional[str] = None
    current_node_id: Optional[str] = None
    answers: Mapping[str, Any] = field(default_factory=dict)
    history: Tuple[str, ...] = ()
    additional_details: str = ''
    errors: Mapping[str, str] = field(default_factory=dict)
    awaiting_direct_submit: bool = False
    request_number: str = field(default_factory=generate_request_number)
    notice: Optional[str] = None

    @property
    def path(self) -> Tuple[str, ...]:
        """Nodes the user has seen, in order (history plus the current node)."""
        out = list(self.history)
        if self.current_node_id and self.current_node_id not in out:
            out.append(self.current_node_id)
        return tuple(out)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step.value,
            'language': self.language,
            'full_name': self.full_name,
            'email': self.email,
            'case_type': self.case_type,
            'current_node_id': self.current_node_id,
            'answers': dict(self.answers),
            'history': list(self.history),
            'additional_details': self.additional_details,
            'errors': dict(self.errors),
            'awaiting_direct_submit': self.awaiting_direct_submit,
            'request_number': self.request_number,
            'notice': self.notice,
        }


def new_session(language: Optional[str] = None) -> WizardSession:
    return WizardSession(language=normalize_language(language))
