"""Wire format of a risk configuration.

Every screen that shows a configuration (detail, edit form, the risk list
banner and the impact x probability matrix) consumes the structure built by
:func:`to_config_array`.
"""
from .calculation import RiskCalculator
from .store import get_active_configuration


def impact_to_dict(impact):
    return {
        'id': impact.id,
        'label': impact.label,
        'score': impact.score,
        'order': impact.order,
        'color': impact.color,
    }


def probability_to_dict(probability):
    return {
        'id': probability.id,
        'label': probability.label,
        'score': probability.score,
        'order': probability.order,
    }


def criteria_impact_to_dict(impact):
    return {
        'id': impact.id,
        'impact_label': impact.impact_label,
        'score': impact.score,
        'order': impact.order,
        'impact_level_id': impact.impact_level_id,
    }


def criteria_to_dict(criteria):
    return {
        'id': criteria.id,
        'name': criteria.name,
        'description': criteria.description,
        'order': criteria.order,
        'impacts': [criteria_impact_to_dict(impact)
                    for impact in sorted(criteria.impacts, key=lambda i: i.order)],
    }


def score_level_to_dict(level):
    if level is None:
        return None
    return {
        'id': level.id,
        'label': level.label,
        'min': level.min,
        'max': level.max,
        'color': level.color,
        'order': level.order,
    }


def _by_order(items):
    return sorted(items, key=lambda item: item.order)


def to_config_array(configuration):
    criterias = []
    if configuration.use_criterias:
        criterias = [criteria_to_dict(c) for c in _by_order(configuration.criterias)]

    return {
        'id': configuration.id,
        'name': configuration.name,
        'impact_scale_max': configuration.impact_scale_max,
        'probability_scale_max': configuration.probability_scale_max,
        'calculation_method': configuration.calculation_method,
        'use_criterias': configuration.use_criterias,
        'is_active': configuration.is_active,
        'version': configuration.version,
        'impacts': [impact_to_dict(i) for i in _by_order(configuration.impacts)],
        'probabilities': [probability_to_dict(p) for p in _by_order(configuration.probabilities)],
        'criterias': criterias,
        'score_levels': [score_level_to_dict(s) for s in _by_order(configuration.score_levels)],
    }


def serialize_calculation(result):
    """Make a calculation result JSON-compatible."""
    data = dict(result)
    data['configuration'] = to_config_array(result['configuration'])
    data['score_level'] = score_level_to_dict(result.get('score_level'))
    if 'impact_level' in data:
        level = data['impact_level']
        data['impact_level'] = impact_to_dict(level) if level is not None else None
    if 'probability_level' in data:
        level = data['probability_level']
        data['probability_level'] = probability_to_dict(level) if level is not None else None
    return data


def build_matrix(configuration):
    """Grid of scores for every impact x probability pair.

    Rows run from the highest probability down, cells from the lowest impact
    up, which is how the matrix is drawn.
    """
    calculator = RiskCalculator(configuration)
    rows = []
    for probability in sorted(configuration.probabilities, key=lambda p: p.order, reverse=True):
        cells = []
        for impact in _by_order(configuration.impacts):
            risk_score = calculator.reduce([impact.score, probability.score])
            cells.append({
                'impact_score': impact.score,
                'probability_score': probability.score,
                'risk_score': risk_score,
                'score_level': score_level_to_dict(calculator.classify(risk_score)),
            })
        rows.append(cells)
    return rows


def get_risk_matrix_data(organization_id):
    configuration = get_active_configuration(organization_id)
    data = to_config_array(configuration)
    data['matrix'] = build_matrix(configuration)
    return data
