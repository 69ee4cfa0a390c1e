import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from .auth import permission_required
from .calculation import (calculate_risk_score, calculate_risk_score_with_criteria,
                          classify_score)
from .errors import (ConcurrentUpdateError, ConfigurationNotFoundError,
                     ConfigurationValidationError, PersistenceError, PreconditionError)
from .matrix import get_risk_matrix_data, score_level_to_dict, serialize_calculation, to_config_array
from .models import MANAGE_RISK_CONFIGURATIONS, VIEW_RISK_CONFIGURATIONS
from .store import (activate_configuration, create_configuration, delete_configuration,
                    get_configuration, list_configurations, update_configuration)
from .validator import validate_configuration

logger = logging.getLogger(__name__)

risk_config_bp = Blueprint('risk_configurations', __name__, url_prefix='/api/risk-configurations')


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _payload_parts(data):
    config_data = {
        'name': data.get('name'),
        'impact_scale_max': data.get('impact_scale_max'),
        'probability_scale_max': data.get('probability_scale_max'),
        'calculation_method': data.get('calculation_method'),
        'use_criterias': data.get('use_criterias', False),
    }
    return (
        config_data,
        data.get('impacts') or [],
        data.get('probabilities') or [],
        data.get('criterias') or [],
        data.get('score_levels') or [],
    )


def _invalid(errors):
    return jsonify({'success': False, 'message': 'Invalid risk configuration', 'errors': errors}), 422


def _not_found(e):
    return jsonify({'success': False, 'message': str(e)}), 404


# --- Configuration CRUD ---

@risk_config_bp.route('/', methods=['GET'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def index():
    configurations = list_configurations(current_user.organization_id)
    return jsonify({
        'success': True,
        'configurations': [to_config_array(c) for c in configurations],
        'can_manage': current_user.has_permission(MANAGE_RISK_CONFIGURATIONS),
    })


@risk_config_bp.route('/', methods=['POST'])
@login_required
@permission_required(MANAGE_RISK_CONFIGURATIONS)
def store():
    data = _json_body()
    parts = _payload_parts(data)

    errors = validate_configuration(*parts)
    if errors:
        return _invalid(errors)

    try:
        configuration = create_configuration(current_user.organization_id, *parts)
    except ConfigurationValidationError as e:
        return _invalid(e.errors)
    except (PersistenceError, ValueError, KeyError, TypeError) as e:
        logger.error('Error creating risk configuration: %s', e)
        return jsonify({'success': False,
                        'message': f'Failed to create risk configuration: {e}'}), 400

    return jsonify({
        'success': True,
        'message': 'Risk configuration created successfully.',
        'configuration': to_config_array(configuration),
    }), 201


@risk_config_bp.route('/<int:configuration_id>', methods=['GET'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def show(configuration_id):
    try:
        configuration = get_configuration(current_user.organization_id, configuration_id)
    except ConfigurationNotFoundError as e:
        return _not_found(e)
    return jsonify({'success': True, 'configuration': to_config_array(configuration)})


@risk_config_bp.route('/<int:configuration_id>', methods=['PUT'])
@login_required
@permission_required(MANAGE_RISK_CONFIGURATIONS)
def update(configuration_id):
    try:
        configuration = get_configuration(current_user.organization_id, configuration_id)
    except ConfigurationNotFoundError as e:
        return _not_found(e)

    data = _json_body()
    parts = _payload_parts(data)

    errors = validate_configuration(*parts)
    if errors:
        return _invalid(errors)

    try:
        configuration = update_configuration(configuration, *parts,
                                             expected_version=data.get('version'))
    except ConfigurationValidationError as e:
        return _invalid(e.errors)
    except ConcurrentUpdateError as e:
        return jsonify({'success': False, 'message': str(e)}), 409
    except (PersistenceError, ValueError, KeyError, TypeError) as e:
        logger.error('Error updating risk configuration %s: %s', configuration_id, e)
        return jsonify({'success': False,
                        'message': f'Failed to update risk configuration: {e}'}), 400

    return jsonify({
        'success': True,
        'message': 'Risk configuration updated successfully.',
        'configuration': to_config_array(configuration),
    })


@risk_config_bp.route('/<int:configuration_id>', methods=['DELETE'])
@login_required
@permission_required(MANAGE_RISK_CONFIGURATIONS)
def destroy(configuration_id):
    try:
        configuration = get_configuration(current_user.organization_id, configuration_id)
        delete_configuration(configuration)
    except ConfigurationNotFoundError as e:
        return _not_found(e)
    except PersistenceError as e:
        return jsonify({'success': False, 'message': str(e)}), 500
    return jsonify({'success': True, 'message': 'Risk configuration deleted successfully.'})


@risk_config_bp.route('/<int:configuration_id>/activate', methods=['POST'])
@login_required
@permission_required(MANAGE_RISK_CONFIGURATIONS)
def activate(configuration_id):
    try:
        configuration = get_configuration(current_user.organization_id, configuration_id)
        configuration = activate_configuration(configuration)
    except ConfigurationNotFoundError as e:
        return _not_found(e)
    except PersistenceError as e:
        return jsonify({'success': False, 'message': str(e)}), 500
    return jsonify({
        'success': True,
        'message': 'Risk configuration activated successfully.',
        'configuration': to_config_array(configuration),
    })


# --- Scoring ---

@risk_config_bp.route('/calculate-risk-score', methods=['POST'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def calculate():
    data = _json_body()
    if data.get('impact_score') is None or data.get('probability_score') is None:
        return jsonify({'success': False,
                        'message': 'impact_score and probability_score are required'}), 400
    try:
        result = calculate_risk_score(current_user.organization_id,
                                      data['impact_score'], data['probability_score'])
    except (ConfigurationNotFoundError, ValueError, TypeError) as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({'success': True, 'data': serialize_calculation(result)})


@risk_config_bp.route('/calculate-risk-score-with-criteria', methods=['POST'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def calculate_with_criteria():
    data = _json_body()
    criteria_scores = data.get('criteria_scores')
    if not isinstance(criteria_scores, dict):
        return jsonify({'success': False, 'message': 'criteria_scores must be an object'}), 400
    try:
        result = calculate_risk_score_with_criteria(current_user.organization_id, criteria_scores)
    except (ConfigurationNotFoundError, PreconditionError, ValueError, TypeError) as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({'success': True, 'data': serialize_calculation(result)})


@risk_config_bp.route('/classify-score', methods=['POST'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def classify():
    data = _json_body()
    try:
        level = classify_score(current_user.organization_id, data.get('score'))
    except (ConfigurationNotFoundError, ValueError, TypeError) as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({'success': True, 'data': score_level_to_dict(level)})


@risk_config_bp.route('/matrix-data', methods=['GET'])
@login_required
@permission_required(VIEW_RISK_CONFIGURATIONS)
def matrix_data():
    try:
        data = get_risk_matrix_data(current_user.organization_id)
    except ConfigurationNotFoundError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({'success': True, 'data': data})
