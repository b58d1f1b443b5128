"""Flow Definition Builder.

Combines the language-independent shapes with one content bundle into immutable
`Flow` graphs:

    build_flow_config('es')['k1-fiance-visa'].nodes['confirm'].prompt

Everything is checked once, at build time:
 - graph integrity (targets exist, every node reachable, no cycles, compared
   values are real option tokens) -> FlowDefinitionError
 - content integrity (prompts present, option value sets match the shape,
   catalog tokens equal the flow keys, no unknown node keys) -> ContentIntegrityError
"""
from __future__ import annotations

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set

from intake_flow.content.store import SUPPORTED_LANGUAGES, get_translations, normalize_language
from intake_flow.errors import ContentIntegrityError, FlowDefinitionError
from intake_flow.flows.branches import END, CollapsedInline, predicate_fields
from intake_flow.flows.models import CHOICE_KINDS, QUESTION_KINDS, Flow, InlineField, Option, Question
from intake_flow.flows.shapes import FLOW_SHAPES, FlowShape, NodeShape

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE_KEYS = (
    'required', 'invalid_option', 'invalid_date', 'invalid_text', 'full_name_required',
    'email_required', 'email_invalid', 'case_type_required', 'unknown_question', 'submit_failed',
    'saved_unconfirmed', 'submitted',
)


# ---------------------------------------------------------------------------
# Graph integrity
# ---------------------------------------------------------------------------

def validate_shape(shape: FlowShape) -> None:
    ct = shape.case_type
    ids = shape.node_ids()
    if len(set(ids)) != len(ids):
        raise FlowDefinitionError(f"[{ct}] duplicate node ids")
    if shape.start not in ids:
        raise FlowDefinitionError(f"[{ct}] start node '{shape.start}' is not defined")
    by_id = {n.id: n for n in shape.nodes}

    def _check_values(where: str, field: str, values) -> None:
        ref = by_id.get(field)
        if ref is None or not ref.options:
            raise FlowDefinitionError(f"[{ct}] {where} compares '{field}', which is not a choice node")
        unknown = [v for v in values if v not in ref.options]
        if unknown:
            raise FlowDefinitionError(f"[{ct}] {where} compares '{field}' to unknown values {unknown}")

    for node in shape.nodes:
        if node.kind not in QUESTION_KINDS:
            raise FlowDefinitionError(f"[{ct}] node '{node.id}' has unknown kind '{node.kind}'")
        if (node.kind in CHOICE_KINDS) != bool(node.options):
            raise FlowDefinitionError(f"[{ct}] node '{node.id}' options do not match kind '{node.kind}'")
        for target in node.branch.targets():
            if target != END and target not in by_id:
                raise FlowDefinitionError(f"[{ct}] node '{node.id}' points to unknown node '{target}'")
        for field, value in node.branch.compared_values():
            _check_values(f"branch of '{node.id}'", field, (value,))
        if node.visible_if is not None:
            for field, values in predicate_fields(node.visible_if):
                _check_values(f"visibility of '{node.id}'", field, values)
        if isinstance(node.branch, CollapsedInline):
            for spec in node.branch.inline:
                if spec.key in by_id:
                    raise FlowDefinitionError(f"[{ct}] inline field '{spec.key}' collides with a node id")
                if spec.kind in CHOICE_KINDS or spec.kind not in QUESTION_KINDS:
                    raise FlowDefinitionError(f"[{ct}] inline field '{spec.key}' must be a free-text kind")
                _check_values(f"inline field '{spec.key}'", node.id, spec.show_when)

    # reachability
    seen: Set[str] = set()
    stack = [shape.start]
    while stack:
        node_id = stack.pop()
        if node_id == END or node_id in seen:
            continue
        seen.add(node_id)
        stack.extend(by_id[node_id].branch.targets())
    unreachable = [i for i in ids if i not in seen]
    if unreachable:
        raise FlowDefinitionError(f"[{ct}] unreachable nodes: {', '.join(unreachable)}")

    # every path must terminate
    state: Dict[str, int] = {}

    def _visit(node_id: str, path: List[str]) -> None:
        if node_id == END or state.get(node_id) == 2:
            return
        if state.get(node_id) == 1:
            raise FlowDefinitionError(f"[{ct}] cycle detected: {' -> '.join(path + [node_id])}")
        state[node_id] = 1
        for target in by_id[node_id].branch.targets():
            _visit(target, path + [node_id])
        state[node_id] = 2

    _visit(shape.start, [])


# ---------------------------------------------------------------------------
# Content resolution
# ---------------------------------------------------------------------------

def _prompt(where: str, entry: Any) -> str:
    prompt = entry.get('prompt') if isinstance(entry, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        raise ContentIntegrityError(f"{where}: missing prompt")
    return prompt


def _options(where: str, node: NodeShape, entry: Dict[str, Any]) -> tuple:
    raw = entry.get('options')
    if node.kind not in CHOICE_KINDS:
        if raw:
            raise ContentIntegrityError(f"{where}: options given for a '{node.kind}' question")
        return ()
    if not isinstance(raw, list) or not raw:
        raise ContentIntegrityError(f"{where}: missing options")
    labels: Dict[str, str] = {}
    for item in raw:
        value = item.get('value') if isinstance(item, dict) else None
        label = item.get('label') if isinstance(item, dict) else None
        if not isinstance(value, str) or not isinstance(label, str) or not label.strip():
            raise ContentIntegrityError(f"{where}: every option needs a string value and label, got {item!r}")
        if value in labels:
            raise ContentIntegrityError(f"{where}: duplicate option value '{value}'")
        labels[value] = label
    if set(labels) != set(node.options):
        raise ContentIntegrityError(
            f"{where}: option values {sorted(labels)} do not match expected {sorted(node.options)}"
        )
    return tuple(Option(value, labels[value]) for value in node.options)


def _catalog_titles(language: str, bundle: Mapping[str, Any], shapes: Mapping[str, FlowShape]) -> Dict[str, str]:
    titles: Dict[str, str] = {}
    for item in bundle.get('case_types') or []:
        value = item.get('value') if isinstance(item, dict) else None
        if not isinstance(value, str) or not item.get('label'):
            raise ContentIntegrityError(f"[{language}] case type entry needs value and label: {item!r}")
        if value in titles:
            raise ContentIntegrityError(f"[{language}] duplicate case type '{value}'")
        titles[value] = item['label']
    if set(titles) != set(shapes):
        missing = sorted(set(shapes) - set(titles))
        extra = sorted(set(titles) - set(shapes))
        raise ContentIntegrityError(
            f"[{language}] case type catalog does not match flows (missing={missing}, unknown={extra})"
        )
    return titles


def build_flow(shape: FlowShape, language: str, bundle: Mapping[str, Any], title: Optional[str] = None) -> Flow:
    ct = shape.case_type
    content = (bundle.get('flows') or {}).get(ct)
    if not isinstance(content, dict):
        raise ContentIntegrityError(f"[{language}] no content for case type '{ct}'")

    inline_keys = [spec.key for n in shape.nodes if isinstance(n.branch, CollapsedInline) for spec in n.branch.inline]
    unknown = sorted(set(content) - set(shape.node_ids()) - set(inline_keys))
    if unknown:
        raise ContentIntegrityError(f"[{language}/{ct}] content for unknown nodes: {', '.join(unknown)}")

    nodes: Dict[str, Question] = {}
    for node in shape.nodes:
        where = f"[{language}/{ct}/{node.id}]"
        entry = content.get(node.id)
        if not isinstance(entry, dict):
            raise ContentIntegrityError(f"{where}: no content")
        inline_fields = ()
        if isinstance(node.branch, CollapsedInline):
            inline_fields = tuple(
                InlineField(
                    key=spec.key,
                    kind=spec.kind,
                    prompt=_prompt(f"[{language}/{ct}/{spec.key}]", content.get(spec.key)),
                    required=spec.required,
                    show_when=spec.show_when,
                )
                for spec in node.branch.inline
            )
        nodes[node.id] = Question(
            id=node.id,
            kind=node.kind,
            prompt=_prompt(where, entry),
            branch=node.branch,
            options=_options(where, node, entry),
            required=node.required,
            visible_if=node.visible_if,
            inline_fields=inline_fields,
        )

    messages = bundle.get('messages') or {}
    missing = [k for k in REQUIRED_MESSAGE_KEYS if not messages.get(k)]
    if missing:
        raise ContentIntegrityError(f"[{language}] missing messages: {', '.join(missing)}")

    return Flow(
        case_type=ct,
        language=language,
        title=title or ct,
        start=shape.start,
        nodes=MappingProxyType(nodes),
        messages=MappingProxyType(dict(messages)),
        completion=shape.completion,
        send_confirmation=shape.send_confirmation,
    )


def build_flows_from_bundle(language: str, bundle: Mapping[str, Any],
                            shapes: Mapping[str, FlowShape] = FLOW_SHAPES) -> Mapping[str, Flow]:
    """Build every case-type flow for one language from an explicit bundle."""
    titles = _catalog_titles(language, bundle, shapes)
    flows: Dict[str, Flow] = {}
    for case_type, shape in shapes.items():
        validate_shape(shape)
        flows[case_type] = build_flow(shape, language, bundle, title=titles[case_type])
    return MappingProxyType(flows)


@lru_cache(maxsize=len(SUPPORTED_LANGUAGES))
def build_flow_config(language: str) -> Mapping[str, Flow]:
    lang = normalize_language(language)
    flows = build_flows_from_bundle(lang, get_translations(lang))
    logger.info("Built %d flows for '%s'", len(flows), lang)
    return flows


# ---------------------------------------------------------------------------
# Cross-language parity
# ---------------------------------------------------------------------------

def _structure(flow: Flow) -> Dict[str, Any]:
    return {
        'start': flow.start,
        'completion': flow.completion,
        'nodes': {
            q.id: (q.kind, q.required, q.option_values(), q.branch,
                   tuple((f.key, f.show_when) for f in q.inline_fields))
            for q in flow.nodes.values()
        },
    }


def assert_language_parity(flows_a: Mapping[str, Flow], flows_b: Mapping[str, Flow]) -> None:
    if set(flows_a) != set(flows_b):
        raise ContentIntegrityError(
            f"case types differ between languages: {sorted(set(flows_a) ^ set(flows_b))}"
        )
    for case_type, flow in flows_a.items():
        if _structure(flow) != _structure(flows_b[case_type]):
            raise ContentIntegrityError(
                f"[{case_type}] structure differs between '{flow.language}' and '{flows_b[case_type].language}'"
            )


def build_all_flows() -> Dict[str, Mapping[str, Flow]]:
    """Build every supported language and assert they are structurally identical."""
    out = {lang: build_flow_config(lang) for lang in SUPPORTED_LANGUAGES}
    base = out[SUPPORTED_LANGUAGES[0]]
    for lang in SUPPORTED_LANGUAGES[1:]:
        assert_language_parity(base, out[lang])
    return out


__all__ = [
    'REQUIRED_MESSAGE_KEYS', 'validate_shape', 'build_flow', 'build_flows_from_bundle',
    'build_flow_config', 'assert_language_parity', 'build_all_flows',
]
