"""Flow definitions: shapes, branch tables and the per-language builder."""

from intake_flow.flows.branches import END
from intake_flow.flows.models import (
    CHOICE_KINDS,
    QUESTION_KINDS,
    CompletionMode,
    Flow,
    InlineField,
    Option,
    Question,
)
from intake_flow.flows.shapes import FLOW_SHAPES, OTHER_CASE_TYPE
from intake_flow.flows.builder import (
    assert_language_parity,
    build_all_flows,
    build_flow_config,
    build_flows_from_bundle,
)

__all__ = [
    "END",
    "CHOICE_KINDS",
    "QUESTION_KINDS",
    "CompletionMode",
    "Flow",
    "InlineField",
    "Option",
    "Question",
    "FLOW_SHAPES",
    "OTHER_CASE_TYPE",
    "assert_language_parity",
    "build_all_flows",
    "build_flow_config",
    "build_flows_from_bundle",
]
