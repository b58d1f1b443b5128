from flask import Blueprint, request, jsonify
from flasgger import swag_from

from intake_flow.api import dependencies
from intake_flow.content.store import get_case_type_options, get_labels, normalize_language

catalog_bp = Blueprint('catalog', __name__)


def _language():
    return normalize_language(request.args.get('lang'))


@catalog_bp.route("/api/case-types", methods=["GET"])
@swag_from({
    'tags': ['catalog'],
    'parameters': [{'name': 'lang', 'in': 'query', 'type': 'string', 'enum': ['en', 'es']}],
    'responses': {200: {'description': 'Selectable case types with localized labels'}}
})
def case_types():
    try:
        lang = _language()
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    # Catalog tokens are the flow keys; the builder refuses to start otherwise.
    flows = dependencies.get_flows(lang)
    data = [item for item in get_case_type_options(lang) if item.get('value') in flows]
    return jsonify({"success": True, "data": data})


@catalog_bp.route("/api/labels", methods=["GET"])
def labels():
    try:
        lang = _language()
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    return jsonify({"success": True, "data": get_labels(lang)})


@catalog_bp.route("/api/flows/<case_type>", methods=["GET"])
@swag_from({
    'tags': ['catalog'],
    'parameters': [
        {'name': 'case_type', 'in': 'path', 'type': 'string', 'required': True},
        {'name': 'lang', 'in': 'query', 'type': 'string', 'enum': ['en', 'es']},
    ],
    'responses': {200: {'description': 'Flow graph for rendering'}, 404: {'description': 'Unknown case type'}}
})
def flow_graph(case_type: str):
    try:
        lang = _language()
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    flow = dependencies.get_flows(lang).get(case_type)
    if flow is None:
        return jsonify({"success": False, "error": "unknown_case_type"}), 404
    return jsonify({"success": True, "data": flow.to_dict()})
