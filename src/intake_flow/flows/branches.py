"""Branch tables and visibility predicates.

Edges between questions are plain data instead of closures so that every flow
can be checked generically (targets exist, graph is acyclic, compared values are
real option tokens) and rendered as JSON.

Branch kinds:
 - Goto(target): unconditional edge
 - OnEquals(field, value, then, otherwise): binary fork on one prior answer
 - Multiway(field, cases, fallback): enumerated fork with an explicit fallback
 - CollapsedInline(target, inline): the node renders inline sub-fields in the
   same step; advancing always jumps to `target`
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

END = 'END'


# ---------------------------------------------------------------------------
# Visibility predicates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Equals:
    field: str
    values: Tuple[str, ...]

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return answers.get(self.field) in self.values

    def to_dict(self) -> Dict[str, Any]:
        return {'op': 'equals', 'field': self.field, 'values': list(self.values)}


@dataclass(frozen=True)
class NotEquals:
    field: str
    values: Tuple[str, ...]

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return answers.get(self.field) not in self.values

    def to_dict(self) -> Dict[str, Any]:
        return {'op': 'not_equals', 'field': self.field, 'values': list(self.values)}


@dataclass(frozen=True)
class AllOf:
    parts: Tuple['Predicate', ...]

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return all(p.evaluate(answers) for p in self.parts)

    def to_dict(self) -> Dict[str, Any]:
        return {'op': 'all_of', 'parts': [p.to_dict() for p in self.parts]}


@dataclass(frozen=True)
class AnyOf:
    parts: Tuple['Predicate', ...]

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return any(p.evaluate(answers) for p in self.parts)

    def to_dict(self) -> Dict[str, Any]:
        return {'op': 'any_of', 'parts': [p.to_dict() for p in self.parts]}


Predicate = Union[Equals, NotEquals, AllOf, AnyOf]


def equals(field: str, *values: str) -> Equals:
    return Equals(field, tuple(values))


def not_equals(field: str, *values: str) -> NotEquals:
    return NotEquals(field, tuple(values))


def all_of(*parts: Predicate) -> AllOf:
    return AllOf(tuple(parts))


def any_of(*parts: Predicate) -> AnyOf:
    return AnyOf(tuple(parts))


def predicate_fields(predicate: Predicate) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    """Flatten a predicate into (field, values) pairs for integrity checks."""
    if isinstance(predicate, (AllOf, AnyOf)):
        out: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
        for part in predicate.parts:
            out += predicate_fields(part)
        return out
    return ((predicate.field, predicate.values),)


# ---------------------------------------------------------------------------
# Branch kinds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InlineSpec:
    """Satellite field rendered inside its parent's step (e.g. '<parent>_explain')."""
    key: str
    kind: str = 'textarea'
    required: bool = True
    show_when: Tuple[str, ...] = ('yes',)


@dataclass(frozen=True)
class Goto:
    target: str

    def resolve(self, answers: Mapping[str, Any]) -> str:
        return self.target

    def targets(self) -> Tuple[str, ...]:
        return (self.target,)

    def compared_values(self) -> Tuple[Tuple[str, str], ...]:
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': 'goto', 'target': self.target}


@dataclass(frozen=True)
class OnEquals:
    field: str
    value: str
    then: str
    otherwise: str

    def resolve(self, answers: Mapping[str, Any]) -> str:
        return self.then if answers.get(self.field) == self.value else self.otherwise

    def targets(self) -> Tuple[str, ...]:
        return (self.then, self.otherwise)

    def compared_values(self) -> Tuple[Tuple[str, str], ...]:
        return ((self.field, self.value),)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': 'on_equals', 'field': self.field, 'value': self.value,
                'then': self.then, 'otherwise': self.otherwise}


@dataclass(frozen=True)
class Multiway:
    field: str
    cases: Tuple[Tuple[str, str], ...]
    fallback: str

    def resolve(self, answers: Mapping[str, Any]) -> str:
        answer = answers.get(self.field)
        for value, target in self.cases:
            if answer == value:
                return target
        return self.fallback

    def targets(self) -> Tuple[str, ...]:
        return tuple(t for _, t in self.cases) + (self.fallback,)

    def compared_values(self) -> Tuple[Tuple[str, str], ...]:
        return tuple((self.field, v) for v, _ in self.cases)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': 'multiway', 'field': self.field,
                'cases': [{'value': v, 'target': t} for v, t in self.cases],
                'fallback': self.fallback}


@dataclass(frozen=True)
class CollapsedInline:
    target: str
    inline: Tuple[InlineSpec, ...]

    def resolve(self, answers: Mapping[str, Any]) -> str:
        return self.target

    def targets(self) -> Tuple[str, ...]:
        return (self.target,)

    def compared_values(self) -> Tuple[Tuple[str, str], ...]:
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': 'collapsed_inline', 'target': self.target,
                'inline': [spec.key for spec in self.inline]}


Branch = Union[Goto, OnEquals, Multiway, CollapsedInline]


def multiway(field: str, cases: Mapping[str, str], fallback: str) -> Multiway:
    return Multiway(field, tuple(cases.items()), fallback)


__all__ = [
    'END', 'Equals', 'NotEquals', 'AllOf', 'AnyOf', 'Predicate', 'equals', 'not_equals',
    'all_of', 'any_of', 'predicate_fields', 'InlineSpec', 'Goto', 'OnEquals', 'Multiway',
    'CollapsedInline', 'Branch', 'multiway',
]
