"""Language-independent flow shapes, one per case type.

A shape fixes node ids, kinds, required flags, option value tokens, visibility
hints and the branch table. Text comes from the content bundles, so the English
and Spanish graphs are built from the same shape and cannot drift apart.

Branch conditions encode eligibility routing (for example a non-citizen K-1
petitioner goes to an explanation node and the flow ends there). Keep every
multi-way fork's fallback written out.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from intake_flow.flows.branches import (
    END, Branch, CollapsedInline, Goto, InlineSpec, OnEquals, Predicate,
    all_of, any_of, equals, multiway, not_equals,
)
from intake_flow.flows.models import CompletionMode

YES_NO = ('yes', 'no')
YES_NO_UNSURE = ('yes', 'no', 'not_sure')
GREEN_CARD_METHODS = ('family', 'employment', 'marriage', 'asylum_refugee', 'other')


@dataclass(frozen=True)
class NodeShape:
    id: str
    kind: str
    branch: Branch
    options: Tuple[str, ...] = ()
    required: bool = True
    visible_if: Optional[Predicate] = None


@dataclass(frozen=True)
class FlowShape:
    case_type: str
    start: str
    nodes: Tuple[NodeShape, ...]
    completion: CompletionMode = CompletionMode.WRAP_UP
    send_confirmation: bool = True

    def node_ids(self) -> Tuple[str, ...]:
        return tuple(n.id for n in self.nodes)

    def get(self, node_id: str) -> Optional[NodeShape]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


def _confirm(node_id: str, branch: Branch, **kw) -> NodeShape:
    return NodeShape(node_id, 'confirm', branch, options=YES_NO, **kw)


IMMEDIATE_RELATIVE = FlowShape(
    case_type='family-based-immigrant-visa-immediate-relative',
    start='confirm',
    nodes=(
        _confirm('confirm', Goto('relationship')),
        NodeShape('relationship', 'single',
                  OnEquals('relationship', 'other', then='relationship_other_details', otherwise='location'),
                  options=('spouse', 'parent', 'child_under_21', 'other')),
        NodeShape('relationship_other_details', 'textarea', Goto('location'),
                  visible_if=equals('relationship', 'other')),
        NodeShape('location', 'single',
                  OnEquals('location', 'inside', then='inside_inspected', otherwise='outside_prior_benefit'),
                  options=('inside', 'outside')),
        NodeShape('inside_inspected', 'single', Goto('inside_entry_status'),
                  options=YES_NO_UNSURE, visible_if=equals('location', 'inside')),
        NodeShape('inside_entry_status', 'single', Goto('inside_overstay'),
                  options=('tourist_visa', 'student_visa', 'parole', 'without_inspection', 'other'),
                  visible_if=equals('location', 'inside')),
        NodeShape('inside_overstay', 'single', Goto(END),
                  options=YES_NO_UNSURE, visible_if=equals('location', 'inside')),
        NodeShape('outside_prior_benefit', 'textarea', Goto('outside_help_type'),
                  visible_if=equals('location', 'outside')),
        NodeShape('outside_help_type', 'textarea', Goto(END),
                  visible_if=equals('location', 'outside')),
    ),
)

GREEN_CARD_PETITIONER = FlowShape(
    case_type='family-based-green-card-petitioner',
    start='status',
    nodes=(
        NodeShape('status', 'single',
                  multiway('status', {
                      'us_citizen': 'citizenship_method',
                      'green_card_holder': 'green_card_method',
                  }, fallback='sponsored_before'),
                  options=('us_citizen', 'green_card_holder', 'other')),
        NodeShape('citizenship_method', 'single',
                  OnEquals('citizenship_method', 'naturalization',
                           then='green_card_method_naturalized', otherwise='sponsored_before'),
                  options=('birth', 'naturalization', 'parents'),
                  visible_if=equals('status', 'us_citizen')),
        NodeShape('green_card_method_naturalized', 'single', Goto('sponsored_before'),
                  options=GREEN_CARD_METHODS,
                  visible_if=all_of(equals('status', 'us_citizen'),
                                    equals('citizenship_method', 'naturalization'))),
        NodeShape('green_card_method', 'single', Goto('sponsored_before'),
                  options=GREEN_CARD_METHODS, visible_if=equals('status', 'green_card_holder')),
        _confirm('sponsored_before',
                 CollapsedInline('beneficiary_relationship',
                                 inline=(InlineSpec('sponsored_before_explain', show_when=('yes',)),))),
        NodeShape('beneficiary_relationship', 'single', Goto('beneficiary_location'),
                  options=('spouse', 'child', 'parent', 'sibling', 'other')),
        NodeShape('beneficiary_location', 'single', Goto(END), options=('inside', 'outside')),
    ),
)

K1_FIANCE = FlowShape(
    case_type='k1-fiance-visa',
    start='confirm',
    nodes=(
        _confirm('confirm', OnEquals('confirm', 'yes', then='met_in_person', otherwise='not_citizen_explanation')),
        NodeShape('not_citizen_explanation', 'textarea', Goto(END), visible_if=equals('confirm', 'no')),
        _confirm('met_in_person', Goto('relationship_duration')),
        NodeShape('relationship_duration', 'single', Goto('fiance_location'),
                  options=('less_than_1_year', '1_to_2_years', 'more_than_2_years')),
        NodeShape('fiance_location', 'single', Goto('prior_immigration_benefit'),
                  options=('outside_us', 'inside_us')),
        _confirm('prior_immigration_benefit',
                 OnEquals('prior_immigration_benefit', 'yes', then='prior_immigration_explanation', otherwise=END)),
        NodeShape('prior_immigration_explanation', 'textarea', Goto(END),
                  visible_if=equals('prior_immigration_benefit', 'yes')),
    ),
)

REMOVAL_OF_CONDITIONS = FlowShape(
    case_type='removal-of-conditions',
    start='confirm',
    nodes=(
        _confirm('confirm', Goto('green_card_date')),
        NodeShape('green_card_date', 'date', Goto('marital_evidence')),
        NodeShape('marital_evidence', 'multi', Goto('filing_type'),
                  options=('joint_lease', 'joint_bank', 'children', 'insurance', 'photos', 'other')),
        NodeShape('filing_type', 'single', Goto('marriage_situation'), options=('joint', 'waiver')),
        NodeShape('marriage_situation', 'single', Goto(END),
                  options=('married_together', 'separated', 'divorced', 'widowed', 'abuse')),
    ),
)

_STILL_MARRIED = ('yes_living_together', 'yes_not_living_together')
_FIVE_YEAR_PATH = any_of(
    not_equals('green_card_how', 'marriage'),
    equals('marriage_sponsor_type', 'lpr_spouse', 'not_marriage'),
    equals('still_married_usc', 'no_divorced'),
)
_THREE_YEAR_PATH = all_of(
    equals('green_card_how', 'marriage'),
    equals('marriage_sponsor_type', 'usc_spouse'),
    equals('still_married_usc', *_STILL_MARRIED),
)

NATURALIZATION_N400 = FlowShape(
    case_type='citizenship-naturalization-n400',
    start='green_card_how',
    nodes=(
        NodeShape('green_card_how', 'single',
                  OnEquals('green_card_how', 'marriage', then='marriage_sponsor_type', otherwise='green_card_date'),
                  options=('marriage', 'family', 'employment', 'asylum_refugee', 'other')),
        NodeShape('marriage_sponsor_type', 'single',
                  multiway('marriage_sponsor_type', {
                      'usc_spouse': 'still_married_usc',
                      'lpr_spouse': 'green_card_date',
                  }, fallback='green_card_date'),
                  options=('usc_spouse', 'lpr_spouse', 'not_marriage'),
                  visible_if=equals('green_card_how', 'marriage')),
        NodeShape('still_married_usc', 'single',
                  multiway('still_married_usc', {
                      'yes_living_together': 'continuously_lived_with_spouse',
                      'yes_not_living_together': 'continuously_lived_with_spouse',
                  }, fallback='green_card_date'),
                  options=_STILL_MARRIED + ('no_divorced',),
                  visible_if=all_of(equals('green_card_how', 'marriage'),
                                    equals('marriage_sponsor_type', 'usc_spouse'))),
        _confirm('continuously_lived_with_spouse', Goto('lived_in_us_3_years'), visible_if=_THREE_YEAR_PATH),
        _confirm('lived_in_us_3_years',
                 OnEquals('lived_in_us_3_years', 'yes', then='trips_over_6_months', otherwise=END),
                 visible_if=_THREE_YEAR_PATH),
        NodeShape('green_card_date', 'date', Goto('lived_in_us_5_years'), visible_if=_FIVE_YEAR_PATH),
        _confirm('lived_in_us_5_years',
                 OnEquals('lived_in_us_5_years', 'yes', then='trips_over_6_months', otherwise=END),
                 visible_if=_FIVE_YEAR_PATH),
        _confirm('trips_over_6_months', Goto(END)),
    ),
)

ASYLUM_AFFIRMATIVE = FlowShape(
    case_type='asylum-affirmative',
    start='confirm',
    nodes=(
        _confirm('confirm', Goto('country_of_origin')),
        NodeShape('country_of_origin', 'text', Goto('inspected')),
        NodeShape('inspected', 'single', Goto('entry_description'), options=YES_NO_UNSURE),
        NodeShape('entry_description', 'textarea', Goto('entry_date')),
        NodeShape('entry_date', 'date', Goto('afraid_return')),
        NodeShape('afraid_return', 'textarea', Goto('immigration_court')),
        _confirm('immigration_court', Goto(END)),
    ),
)

OTHER = FlowShape(
    case_type='other',
    start='other_assistance_type',
    nodes=(
        NodeShape('other_assistance_type', 'textarea', Goto(END)),
    ),
    completion=CompletionMode.DIRECT_SUBMIT,
    send_confirmation=False,
)

OTHER_CASE_TYPE = OTHER.case_type

FLOW_SHAPES: Dict[str, FlowShape] = {
    shape.case_type: shape
    for shape in (
        IMMEDIATE_RELATIVE,
        GREEN_CARD_PETITIONER,
        K1_FIANCE,
        REMOVAL_OF_CONDITIONS,
        NATURALIZATION_N400,
        ASYLUM_AFFIRMATIVE,
        OTHER,
    )
}
