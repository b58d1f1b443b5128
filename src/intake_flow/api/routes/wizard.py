import logging
from flask import Blueprint, request, jsonify
from flasgger import swag_from
from werkzeug.exceptions import BadRequest
from pydantic import ValidationError

from intake_flow.api import config, state, dependencies, models
from intake_flow.api.extensions import limiter
from intake_flow.errors import IntakeFlowError

logger = logging.getLogger(__name__)

wizard_bp = Blueprint('wizard', __name__)


def _json_body():
    raw = request.get_json(silent=True)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise BadRequest("Body must be a JSON object")
    return raw


def _not_found():
    return jsonify({"error": "session_not_found"}), 404


def _record_outcome(outcome):
    if not outcome.ok:
        logger.warning(f"[api] submission {outcome.request_number} failed: {outcome.message}")
    state.record_submission(outcome.status.value)
    if state.SUBMISSIONS_TOTAL:
        state.SUBMISSIONS_TOTAL.labels(outcome.status.value).inc()


@wizard_bp.route("/api/wizard/sessions", methods=["POST"])
@limiter.limit("30/minute")
@swag_from({
    'tags': ['wizard'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': False,
        'schema': {'type': 'object', 'properties': {'language': {'type': 'string', 'enum': ['en', 'es']}}}
    }],
    'responses': {201: {'description': 'Session created'}}
})
def create_session():
    try:
        parsed = models.CreateSessionRequest(**_json_body())
        controller = dependencies.new_controller(parsed.language)
    except ValidationError as ve:
        return jsonify({"error": "validation_failed", "details": ve.errors()}), 400
    except ValueError as e:
        return jsonify({"error": "validation_failed", "details": str(e)}), 400
    state.evict_expired(config.SESSION_TTL_SECONDS, config.MAX_SESSIONS)
    session_id = dependencies.new_session_id()
    state.put_session(session_id, controller)
    return jsonify({"session_id": session_id, **controller.view()}), 201


@wizard_bp.route("/api/wizard/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str):
    controller = state.get_session(session_id)
    if controller is None:
        return _not_found()
    return jsonify({"session_id": session_id, **controller.view()})


@wizard_bp.route("/api/wizard/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    if not state.drop_session(session_id):
        return _not_found()
    return jsonify({"deleted": True})


@wizard_bp.route("/api/wizard/sessions/<session_id>/actions", methods=["POST"])
@swag_from({
    'tags': ['wizard'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {'type': 'object', 'properties': {
            'type': {'type': 'string', 'enum': [
                'submit_basic_info', 'select_case_type', 'answer', 'set_additional_details',
                'next', 'back', 'change_language', 'reset']},
            'full_name': {'type': 'string'}, 'email': {'type': 'string'},
            'case_type': {'type': 'string'}, 'key': {'type': 'string'},
            'value': {}, 'text': {'type': 'string'}, 'language': {'type': 'string'},
        }}
    }],
    'responses': {200: {'description': 'Updated session'}, 502: {'description': 'Submission failed'}}
})
def session_action(session_id: str):
    try:
        parsed = models.WizardActionRequest(**_json_body())
        action = parsed.to_action()
    except ValidationError as ve:
        return jsonify({"error": "validation_failed", "details": ve.errors()}), 400
    except ValueError as e:
        return jsonify({"error": "validation_failed", "details": str(e)}), 400

    with state.locked_session(session_id) as controller:
        if controller is None:
            return _not_found()
        try:
            outcome = controller.dispatch(action)
        except ValueError as e:
            return jsonify({"error": "validation_failed", "details": str(e)}), 400
        if state.WIZARD_TRANSITIONS:
            state.WIZARD_TRANSITIONS.labels(parsed.type, controller.session.step.value).inc()
        body = {"session_id": session_id, **controller.view()}
        if outcome is None:
            return jsonify(body)
        _record_outcome(outcome)
        body["submission"] = outcome.to_dict()
        return jsonify(body), (200 if outcome.ok else 502)


@wizard_bp.route("/api/wizard/sessions/<session_id>/submit", methods=["POST"])
@limiter.limit("10/minute")
def submit_session(session_id: str):
    with state.locked_session(session_id) as controller:
        if controller is None:
            return _not_found()
        try:
            outcome = controller.submit()
        except IntakeFlowError as e:
            return jsonify({"error": "not_ready", "details": str(e)}), 409
        _record_outcome(outcome)
        body = {"session_id": session_id, **controller.view(), "submission": outcome.to_dict()}
        return jsonify(body), (200 if outcome.ok else 502)
