"""Transcript and submission payload assembly."""

from dataclasses import replace

from intake_flow.wizard.session import WizardStep, new_session
from intake_flow.wizard.transcript import build_submission, build_transcript, display_answer, split_full_name


class TestTranscript:

    def test_k1_non_citizen_has_two_entries(self, flows_en):
        flow = flows_en['k1-fiance-visa']
        answers = {'confirm': 'no', 'not_citizen_explanation': 'I am a permanent resident'}
        entries = build_transcript(flow, ['confirm'], 'not_citizen_explanation', answers)
        assert entries == [
            {'question': flow.nodes['confirm'].prompt, 'answer': 'No'},
            {'question': flow.nodes['not_citizen_explanation'].prompt, 'answer': 'I am a permanent resident'},
        ]

    def test_last_node_not_duplicated_at_end(self, flows_en):
        flow = flows_en['k1-fiance-visa']
        answers = {'confirm': 'no', 'not_citizen_explanation': 'LPR'}
        entries = build_transcript(flow, ['confirm', 'not_citizen_explanation'], 'not_citizen_explanation', answers)
        assert len(entries) == 2

    def test_unvisited_answers_are_left_out(self, flows_en):
        """Answers kept from an abandoned branch never reach the transcript."""
        flow = flows_en['k1-fiance-visa']
        answers = {'confirm': 'no', 'met_in_person': 'yes', 'not_citizen_explanation': 'LPR'}
        entries = build_transcript(flow, ['confirm'], 'not_citizen_explanation', answers)
        assert [e['question'] for e in entries] == [
            flow.nodes['confirm'].prompt, flow.nodes['not_citizen_explanation'].prompt,
        ]

    def test_petitioner_naturalized_citizen(self, flows_en):
        flow = flows_en['family-based-green-card-petitioner']
        history = ['status', 'citizenship_method', 'green_card_method_naturalized', 'sponsored_before',
                   'beneficiary_relationship']
        answers = {
            'status': 'us_citizen',
            'citizenship_method': 'naturalization',
            'green_card_method_naturalized': 'marriage',
            'sponsored_before': 'yes',
            'sponsored_before_explain': 'My sister, approved',
            'beneficiary_relationship': 'parent',
            'beneficiary_location': 'outside',
        }
        entries = build_transcript(flow, history, 'beneficiary_location', answers)
        assert [e['answer'] for e in entries] == [
            'U.S. citizen', 'Naturalization', 'Through marriage', 'Yes', 'My sister, approved',
            'My parent', 'Outside the United States',
        ]
        satellite = flow.nodes['sponsored_before'].inline_fields[0]
        assert entries[4]['question'] == satellite.prompt

    def test_hidden_satellite_omitted(self, flows_en):
        flow = flows_en['family-based-green-card-petitioner']
        answers = {'status': 'other', 'sponsored_before': 'no', 'sponsored_before_explain': 'stale text'}
        entries = build_transcript(flow, ['status'], 'sponsored_before', answers)
        assert [e['answer'] for e in entries] == ['Other / not sure', 'No']

    def test_spanish_labels(self, flows_es):
        flow = flows_es['k1-fiance-visa']
        entries = build_transcript(flow, [], 'confirm', {'confirm': 'yes'})
        assert entries[0]['answer'] == flow.nodes['confirm'].option_label('yes')
        assert entries[0]['question'] == flow.nodes['confirm'].prompt

    def test_multi_select_joined(self, flows_en):
        q = flows_en['removal-of-conditions'].nodes['marital_evidence']
        expected = f"{q.option_label('photos')}, {q.option_label('children')}"
        assert display_answer(q, ['photos', 'children']) == expected


class TestSubmissionPayload:

    def test_split_full_name(self):
        assert split_full_name('Maria Lopez Garcia') == ('Maria', 'Lopez Garcia')
        assert split_full_name('Cher') == ('Cher', '')
        assert split_full_name('   ') == ('', '')

    def test_wire_format(self, flows_en):
        flow = flows_en['k1-fiance-visa']
        session = replace(
            new_session('en'),
            step=WizardStep.WRAP_UP,
            full_name='Maria Lopez',
            email='maria@example.com',
            case_type='k1-fiance-visa',
            current_node_id='not_citizen_explanation',
            history=('confirm', 'not_citizen_explanation'),
            answers={'confirm': 'no', 'not_citizen_explanation': 'LPR'},
            additional_details='  none  ',
        )
        wire = build_submission(session, flow, submitted_at='2024-05-01T12:00:00Z').to_wire()
        assert wire['requestNumber'] == session.request_number
        assert wire['requestNumber'].startswith('lr-')
        assert wire['caseType'] == 'k1-fiance-visa'
        assert wire['language'] == 'en'
        assert wire['firstName'] == 'Maria'
        form = wire['formResponses']
        assert form['submittedAt'] == '2024-05-01T12:00:00Z'
        assert form['additionalDetails'] == 'none'
        assert form['answers'] == {'confirm': 'no', 'not_citizen_explanation': 'LPR'}
        assert len(form['transcript']) == 2
