"""Exhaustive walks over every shipped flow in every language.

Each walk answers every choice node with each of its options in turn, so all
branch outcomes (including multi-way fallbacks) are exercised.
"""

import pytest

from intake_flow.engine.traversal import compute_next
from intake_flow.flows import END, FLOW_SHAPES
from intake_flow.wizard.transcript import build_transcript

FREE_TEXT = {'text': 'Guatemala', 'textarea': 'Some details', 'date': '2020-01-15'}


def _choices(question):
    if question.kind == 'multi':
        return [[v] for v in question.option_values()]
    if question.options:
        return list(question.option_values())
    return [FREE_TEXT[question.kind]]


def walk_all(flow):
    """Yield (history, answers) for every complete route from start to END."""
    def _walk(node_id, history, answers):
        if len(history) > len(flow.nodes):
            raise AssertionError(f"{flow.case_type}: walk did not terminate")
        question = flow.nodes[node_id]
        for value in _choices(question):
            step = dict(answers)
            step[node_id] = value
            for inline in question.inline_fields:
                if inline.is_visible(value):
                    step[inline.key] = 'Inline details'
            target = compute_next(flow, node_id, step)
            if target == END:
                yield history + [node_id], step
            else:
                yield from _walk(target, history + [node_id], step)

    yield from _walk(flow.start, [], {})


@pytest.mark.parametrize("language", ['en', 'es'])
@pytest.mark.parametrize("case_type", list(FLOW_SHAPES))
class TestEveryRoute:

    def test_routes_terminate_without_repeats(self, flows_by_language, language, case_type):
        flow = flows_by_language[language][case_type]
        routes = list(walk_all(flow))
        assert routes
        for history, _ in routes:
            assert history[0] == flow.start
            assert len(history) == len(set(history))

    def test_every_node_is_on_some_route(self, flows_by_language, language, case_type):
        flow = flows_by_language[language][case_type]
        visited = {node_id for history, _ in walk_all(flow) for node_id in history}
        assert visited == set(flow.nodes)

    def test_visibility_hints_agree_with_routing(self, flows_by_language, language, case_type):
        flow = flows_by_language[language][case_type]
        for history, answers in walk_all(flow):
            for node_id in history:
                assert flow.nodes[node_id].is_visible(answers), f"{node_id} reached but hidden"

    def test_transcript_follows_route(self, flows_by_language, language, case_type):
        flow = flows_by_language[language][case_type]
        for history, answers in walk_all(flow):
            entries = build_transcript(flow, history[:-1], history[-1], answers)
            prompts = [e['question'] for e in entries]
            main = [flow.nodes[n].prompt for n in history]
            assert [p for p in prompts if p in main] == main


def test_languages_walk_the_same_routes(flows_by_language):
    for case_type in FLOW_SHAPES:
        en = [h for h, _ in walk_all(flows_by_language['en'][case_type])]
        es = [h for h, _ in walk_all(flows_by_language['es'][case_type])]
        assert en == es
