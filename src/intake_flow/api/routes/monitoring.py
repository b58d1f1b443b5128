import os
import platform
from flask import Blueprint, jsonify, Response

from intake_flow.api import config, state
from intake_flow.content.store import content_metadata

monitoring_bp = Blueprint('monitoring', __name__)

@monitoring_bp.route("/metrics", methods=["GET"])
def metrics():
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

@monitoring_bp.route("/version", methods=["GET"])
def version():
    flows = None
    if state.flows_by_language:
        flows = {lang: sorted(by_type) for lang, by_type in state.flows_by_language.items()}
    return jsonify({
        "version": config.APP_VERSION,
        "env": config.APP_ENV,
        "commit": os.getenv("GIT_COMMIT"),
        "python": platform.python_version(),
        "flows": flows,
        "content": content_metadata(),
    })

@monitoring_bp.route("/api/version", methods=["GET"])
def api_version():
    return version()

@monitoring_bp.route("/api/health", methods=["GET"])
def health():
    if state.flows_by_language is None:
        return jsonify({"status": "error", "detail": state.flows_error or "flows not loaded"}), 500
    return jsonify({"status": "ok"}), 200

@monitoring_bp.route("/api/health/ready", methods=["GET"])
def health_ready():
    """Readiness probe - checks that every language's flows are built."""
    checks = {
        'flows_loaded': state.flows_by_language is not None,
        'intake_configured': bool(config.INTAKE_API_URL),
    }
    ready = checks['flows_loaded']
    return jsonify({
        "ready": ready,
        "checks": checks,
        "error": state.flows_error,
    }), 200 if ready else 503

@monitoring_bp.route("/api/health/live", methods=["GET"])
def health_live():
    """Liveness probe - minimal check that service is running."""
    return jsonify({"alive": True}), 200

@monitoring_bp.route("/api/stats/wizard", methods=["GET"])
def wizard_stats():
    """Return session and submission counters for monitoring."""
    with state.sessions_lock:
        stats = dict(state.wizard_stats)
        stats['active_sessions'] = len(state.SESSIONS)
    return jsonify(stats)
