"""HTTP surface: catalog, wizard sessions and monitoring endpoints."""

import json

import pytest

from intake_flow.api import config, state
from intake_flow.api.extensions import limiter
from intake_flow.api.server import app


@pytest.fixture
def api(fake_client):
    limiter.enabled = False
    previous = state.intake_client
    state.intake_client = fake_client
    with state.sessions_lock:
        state.SESSIONS.clear()
    with app.test_client() as c:
        yield c
    state.intake_client = previous


def _post(c, path, payload=None):
    return c.post(path, data=json.dumps(payload or {}), content_type='application/json')


def _create(c, language='en'):
    r = _post(c, '/api/wizard/sessions', {"language": language})
    assert r.status_code == 201
    return r.get_json()


def _act(c, sid, **payload):
    return _post(c, f'/api/wizard/sessions/{sid}/actions', payload)


class TestCatalog:

    def test_case_types(self, api):
        r = api.get('/api/case-types?lang=es')
        assert r.status_code == 200
        data = r.get_json()['data']
        values = [c['value'] for c in data]
        assert 'k1-fiance-visa' in values and 'other' in values

    def test_bad_language(self, api):
        r = api.get('/api/case-types?lang=fr')
        assert r.status_code == 400

    def test_flow_graph(self, api):
        r = api.get('/api/flows/k1-fiance-visa?lang=en')
        assert r.status_code == 200
        flow = r.get_json()['data']
        assert flow['start'] == 'confirm'
        assert flow['nodes']['confirm']['branch']['kind'] == 'on_equals'

    def test_unknown_flow(self, api):
        r = api.get('/api/flows/nope')
        assert r.status_code == 404
        assert r.get_json()['error'] == 'unknown_case_type'

    def test_labels(self, api):
        r = api.get('/api/labels?lang=es')
        assert r.status_code == 200
        assert 'submitButton' in r.get_json()['data']


class TestWizardSessions:

    def test_create_and_fetch(self, api):
        view = _create(api, 'es-MX')
        assert view['step'] == 'basic-info'
        assert view['language'] == 'es'
        r = api.get(f"/api/wizard/sessions/{view['session_id']}")
        assert r.status_code == 200
        assert r.get_json()['request_number'] == view['request_number']

    def test_create_with_bad_language(self, api):
        r = _post(api, '/api/wizard/sessions', {"language": "fr"})
        assert r.status_code == 400
        assert r.get_json()['error'] == 'validation_failed'

    def test_unknown_session(self, api):
        assert api.get('/api/wizard/sessions/missing').status_code == 404
        assert _act(api, 'missing', type='next').status_code == 404
        assert api.delete('/api/wizard/sessions/missing').status_code == 404

    def test_invalid_action(self, api):
        sid = _create(api)['session_id']
        r = _act(api, sid, type='teleport')
        assert r.status_code == 400
        assert r.get_json()['error'] == 'validation_failed'
        r = _act(api, sid, type='answer', value='yes')
        assert r.status_code == 400

    def test_walk_to_wrap_up_and_submit(self, api, fake_client):
        sid = _create(api)['session_id']
        _act(api, sid, type='submit_basic_info', full_name='Maria Lopez', email='maria@example.com')
        view = _act(api, sid, type='select_case_type', case_type='k1-fiance-visa').get_json()
        assert view['question']['id'] == 'confirm'
        assert view['can_advance'] is False
        view = _act(api, sid, type='answer', key='confirm', value=False).get_json()
        assert view['answers']['confirm'] == 'no'
        assert view['can_advance'] is True
        view = _act(api, sid, type='next').get_json()
        assert view['current_node_id'] == 'not_citizen_explanation'
        _act(api, sid, type='answer', key='not_citizen_explanation', value='Permanent resident')
        view = _act(api, sid, type='next').get_json()
        assert view['step'] == 'wrap-up'
        assert view['ready_to_submit'] is True

        r = _post(api, f'/api/wizard/sessions/{sid}/submit')
        assert r.status_code == 200
        body = r.get_json()
        assert body['submission']['status'] == 'submitted'
        assert len(body['submission']['transcript']) == 2
        assert body['step'] == 'basic-info'
        assert len(fake_client.submissions) == 1

    def test_submit_before_ready_conflicts(self, api):
        sid = _create(api)['session_id']
        r = _post(api, f'/api/wizard/sessions/{sid}/submit')
        assert r.status_code == 409

    def test_failed_submission_returns_502(self, api, fake_client):
        fake_client.fail_submit = True
        sid = _create(api)['session_id']
        _act(api, sid, type='submit_basic_info', full_name='Ana Ruiz', email='ana@example.com')
        _act(api, sid, type='select_case_type', case_type='other')
        _act(api, sid, type='answer', key='other_assistance_type', value='Question about DACA')
        r = _act(api, sid, type='next')
        assert r.status_code == 502
        body = r.get_json()
        assert body['submission']['status'] == 'failed'
        assert body['awaiting_direct_submit'] is True
        assert 'submit' in body['errors']

    def test_delete_session(self, api):
        sid = _create(api)['session_id']
        assert api.delete(f'/api/wizard/sessions/{sid}').status_code == 200
        assert api.get(f'/api/wizard/sessions/{sid}').status_code == 404


class TestMonitoring:

    def test_health(self, api):
        assert api.get('/api/health').status_code == 200
        r = api.get('/api/health/ready')
        assert r.status_code == 200
        assert r.get_json()['checks']['flows_loaded'] is True
        assert api.get('/api/health/live').get_json() == {"alive": True}

    def test_version(self, api):
        data = api.get('/version').get_json()
        assert 'k1-fiance-visa' in data['flows']['en']
        assert data['content']['languages'] == ['en', 'es']

    def test_metrics_endpoint(self, api):
        api.get('/api/health/live')
        r = api.get('/metrics')
        assert r.status_code == 200
        assert 'text/plain' in r.content_type
        assert 'intake_flow_requests_total' in r.get_data(as_text=True)

    def test_wizard_stats(self, api):
        _create(api)
        data = api.get('/api/stats/wizard').get_json()
        assert data['active_sessions'] >= 1
        assert data['sessions_created'] >= 1

    def test_request_id_echoed(self, api):
        r = api.get('/api/health/live', headers={'X-Request-ID': 'abc-123'})
        assert r.headers['X-Request-ID'] == 'abc-123'


class TestSessionExpiry:
    """Idle sessions past SESSION_TTL_SECONDS are gone on their next access."""

    def _backdate(self, sid, seconds):
        with state.sessions_lock:
            state.SESSIONS[sid]['last_seen'] -= seconds

    def test_expired_session_is_not_readable(self, api):
        sid = _create(api)['session_id']
        self._backdate(sid, config.SESSION_TTL_SECONDS + 60)
        expired_before = state.wizard_stats['sessions_expired']
        assert api.get(f'/api/wizard/sessions/{sid}').status_code == 404
        assert sid not in state.SESSIONS
        assert state.wizard_stats['sessions_expired'] == expired_before + 1

    def test_expired_session_rejects_actions(self, api):
        sid = _create(api)['session_id']
        self._backdate(sid, config.SESSION_TTL_SECONDS + 60)
        r = _act(api, sid, type='submit_basic_info', full_name='Ana Ruiz', email='ana@example.com')
        assert r.status_code == 404
        assert _post(api, f'/api/wizard/sessions/{sid}/submit').status_code == 404

    def test_recent_session_survives(self, api):
        sid = _create(api)['session_id']
        self._backdate(sid, config.SESSION_TTL_SECONDS - 60)
        assert api.get(f'/api/wizard/sessions/{sid}').status_code == 200

    def test_evict_expired_drops_idle_sessions(self, api):
        stale = _create(api)['session_id']
        fresh = _create(api)['session_id']
        self._backdate(stale, 120)
        assert state.evict_expired(60) == 1
        assert stale not in state.SESSIONS
        assert fresh in state.SESSIONS

    def test_evict_expired_caps_least_recently_used(self, api):
        ids = [_create(api)['session_id'] for _ in range(3)]
        for age, sid in zip((30, 20, 10), ids):
            self._backdate(sid, age)
        assert state.evict_expired(3600, max_sessions=1) == 2
        assert list(state.SESSIONS) == [ids[2]]
