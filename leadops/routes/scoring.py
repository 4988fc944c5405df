"""
Scoring routes — manual recompute triggers + run history.

Recompute endpoints return 200 with the summary even when the run failed;
failures are reported inside `errors`.
"""
from flask import Blueprint, current_app, jsonify, request

from leadops.config import MODE_FULL, MODE_SCORES_ONLY, RECOMPUTE_MODES
from leadops.services.batch import build_runner, list_run_logs

bp = Blueprint('scoring', __name__)


def _runner():
    """One runner per app, built lazily on first use."""
    runner = current_app.extensions.get('scoring_runner')
    if runner is None:
        runner = build_runner()
        current_app.extensions['scoring_runner'] = runner
    return runner


@bp.route('/api/clients/<client_id>/scores/recompute', methods=['POST'])
def recompute_client(client_id):
    """Full recompute: conversion rates + lead scores."""
    summary = _runner().run_client(client_id, mode=MODE_FULL)
    return jsonify({'client_id': client_id, **summary.to_dict()})


@bp.route('/api/clients/<client_id>/scores/recalculate', methods=['POST'])
def recalculate_client(client_id):
    """Score-only recompute from the already stored conversion rates."""
    summary = _runner().run_client(client_id, mode=MODE_SCORES_ONLY)
    return jsonify({'client_id': client_id, **summary.to_dict()})


@bp.route('/api/scores/recompute-all', methods=['POST'])
def recompute_all():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    mode = data.get('mode', MODE_FULL)
    if mode not in RECOMPUTE_MODES:
        return jsonify({'error': f'Unsupported mode: {mode}'}), 400

    result = _runner().run_all(mode=mode, trigger='manual')
    return jsonify(result.to_dict())


@bp.route('/api/scoring-runs')
def scoring_runs():
    try:
        limit = int(request.args.get('limit', 50))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(1, min(limit, 500))
    return jsonify({'runs': list_run_logs(limit=limit)})
