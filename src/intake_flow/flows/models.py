from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from intake_flow.flows.branches import Branch, CollapsedInline, Predicate

QUESTION_KINDS = ('confirm', 'single', 'multi', 'text', 'textarea', 'date')
CHOICE_KINDS = ('confirm', 'single', 'multi')


class CompletionMode(str, Enum):
    WRAP_UP = 'wrap-up'
    DIRECT_SUBMIT = 'direct-submit'


@dataclass(frozen=True)
class Option:
    value: str
    label: str


@dataclass(frozen=True)
class InlineField:
    key: str
    kind: str
    prompt: str
    required: bool
    show_when: Tuple[str, ...]

    def is_visible(self, parent_answer: Any) -> bool:
        return parent_answer in self.show_when

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key, 'kind': self.kind, 'prompt': self.prompt,
                'required': self.required, 'show_when': list(self.show_when)}


@dataclass(frozen=True)
class Question:
    id: str
    kind: str
    prompt: str
    branch: Branch
    options: Tuple[Option, ...] = ()
    required: bool = True
    visible_if: Optional[Predicate] = None
    inline_fields: Tuple[InlineField, ...] = ()

    @property
    def has_inline_fields(self) -> bool:
        return isinstance(self.branch, CollapsedInline)

    def option_values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options)

    def option_label(self, value: Any) -> Optional[str]:
        for opt in self.options:
            if opt.value == value:
                return opt.label
        return None

    def is_visible(self, answers: Mapping[str, Any]) -> bool:
        # Display-time hint only; traversal follows the branch table.
        return self.visible_if is None or self.visible_if.evaluate(answers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind,
            'prompt': self.prompt,
            'options': [{'value': o.value, 'label': o.label} for o in self.options],
            'required': self.required,
            'visible_if': self.visible_if.to_dict() if self.visible_if else None,
            'inline_fields': [f.to_dict() for f in self.inline_fields],
            'branch': self.branch.to_dict(),
        }


@dataclass(frozen=True)
class Flow:
    case_type: str
    language: str
    title: str
    start: str
    nodes: Mapping[str, Question]
    messages: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    completion: CompletionMode = CompletionMode.WRAP_UP
    send_confirmation: bool = True

    def message(self, key: str) -> str:
        return self.messages.get(key, key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'case_type': self.case_type,
            'language': self.language,
            'title': self.title,
            'start': self.start,
            'completion': self.completion.value,
            'nodes': {node_id: q.to_dict() for node_id, q in self.nodes.items()},
        }
