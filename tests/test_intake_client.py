"""IntakeClient against a mocked requests.Session."""

from unittest.mock import MagicMock

import pytest
import requests

from intake_flow.errors import ConfirmationEmailError, SubmissionError
from intake_flow.wizard import IntakeClient, SubmissionStatus, WizardController
from intake_flow.wizard.payload import FormResponses, IntakeSubmission
from intake_flow.wizard.reducer import Answer, Next, SelectCaseType, SubmitBasicInfo


def _response(body=None, error=None):
    resp = MagicMock()
    if error is not None:
        resp.raise_for_status.side_effect = error
    resp.json.return_value = body
    return resp


def _http(*responses):
    session = MagicMock(spec=requests.Session)
    session.post.side_effect = list(responses)
    return session


def _submission(request_number='lr-123456'):
    return IntakeSubmission(
        request_number=request_number,
        first_name='Maria',
        last_name='Lopez',
        email='maria@example.com',
        case_type='other',
        language='en',
        form_responses=FormResponses(submitted_at='2024-05-01T12:00:00Z'),
    )


class TestSubmitIntake:

    def test_posts_wire_payload(self):
        http = _http(_response({'success': True, 'data': {'requestNumber': 'lr-999999'}}))
        client = IntakeClient('http://intake.local/', timeout=3, session=http)
        assert client.submit_intake(_submission()) == 'lr-999999'
        args, kwargs = http.post.call_args
        assert args[0] == 'http://intake.local/api/legal-requests'
        assert kwargs['timeout'] == 3
        assert kwargs['json']['requestNumber'] == 'lr-123456'
        assert kwargs['json']['formResponses']['submittedAt'] == '2024-05-01T12:00:00Z'

    def test_keeps_local_number_when_server_omits_it(self):
        client = IntakeClient('http://intake.local', session=_http(_response({'success': True})))
        assert client.submit_intake(_submission('lr-222222')) == 'lr-222222'

    def test_rejected_request(self):
        client = IntakeClient('http://intake.local', session=_http(_response({'success': False, 'error': 'dup'})))
        with pytest.raises(SubmissionError, match='dup'):
            client.submit_intake(_submission())

    @pytest.mark.parametrize("data", [['unexpected'], 'lr-1', 42])
    def test_malformed_data_is_a_submission_error(self, data):
        client = IntakeClient('http://intake.local', session=_http(_response({'success': True, 'data': data})))
        with pytest.raises(SubmissionError):
            client.submit_intake(_submission())

    def test_http_error(self):
        resp = _response(error=requests.HTTPError('503 Service Unavailable'))
        client = IntakeClient('http://intake.local', session=_http(resp))
        with pytest.raises(SubmissionError, match='503'):
            client.submit_intake(_submission())

    def test_connection_error(self):
        http = MagicMock(spec=requests.Session)
        http.post.side_effect = requests.ConnectionError('refused')
        with pytest.raises(SubmissionError):
            IntakeClient('http://intake.local', session=http).submit_intake(_submission())

    def test_body_that_is_not_json(self):
        resp = _response()
        resp.json.side_effect = ValueError('Expecting value')
        with pytest.raises(SubmissionError):
            IntakeClient('http://intake.local', session=_http(resp)).submit_intake(_submission())

    def test_body_that_is_not_an_object(self):
        client = IntakeClient('http://intake.local', session=_http(_response(['ok'])))
        with pytest.raises(SubmissionError):
            client.submit_intake(_submission())

    def test_missing_base_url(self):
        http = _http()
        with pytest.raises(SubmissionError):
            IntakeClient('', session=http).submit_intake(_submission())
        http.post.assert_not_called()


class TestSendConfirmation:

    @pytest.mark.parametrize("language,suffix", [('en', ''), ('es', '-spanish')])
    def test_path_per_language(self, language, suffix):
        http = _http(_response({'success': True}))
        IntakeClient('http://intake.local', session=http).send_confirmation('lr-123456', language)
        assert http.post.call_args[0][0] == f'http://intake.local/api/legal-requests/lr-123456/send-confirmation{suffix}'

    def test_explicit_failure(self):
        http = _http(_response({'success': False, 'error': 'mailbox full'}))
        with pytest.raises(ConfirmationEmailError, match='mailbox full'):
            IntakeClient('http://intake.local', session=http).send_confirmation('lr-123456')

    def test_http_error(self):
        http = _http(_response(error=requests.HTTPError('502 Bad Gateway')))
        with pytest.raises(ConfirmationEmailError):
            IntakeClient('http://intake.local', session=http).send_confirmation('lr-123456')


def test_malformed_response_keeps_session_for_retry(flows_by_language):
    """A bad intake response surfaces as a failed outcome, not an exception."""
    http = _http(_response({'success': True, 'data': ['unexpected']}))
    wc = WizardController(client=IntakeClient('http://intake.local', session=http),
                          flows_by_language=flows_by_language)
    wc.dispatch(SubmitBasicInfo('Ana Ruiz', 'ana@example.com'))
    wc.dispatch(SelectCaseType('other'))
    wc.dispatch(Answer('other_assistance_type', 'Question about a work permit'))
    outcome = wc.dispatch(Next())
    assert outcome.status == SubmissionStatus.FAILED
    assert wc.session.awaiting_direct_submit
    assert 'submit' in wc.session.errors
    assert wc.session.answers['other_assistance_type'] == 'Question about a work permit'
