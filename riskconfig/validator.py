"""Consistency checks for a submitted risk configuration.

The validator never touches the database and never raises: it returns the
full list of problems so a form can show all of them at once. An empty list
means the configuration may be persisted.
"""
import math

from .models import CALCULATION_METHODS

SCALE_MIN = 2
SCALE_MAX = 10

TRUE_VALUES = ('1', 'true')
FALSE_VALUES = ('0', 'false')


def as_boolean(value):
    """Parse a submitted flag: true/false, 1/0 or their string forms.

    A missing value is false. Anything else gives ``None``.
    """
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        value = value.strip().lower()
        if value in TRUE_VALUES:
            return True
        if value in FALSE_VALUES:
            return False
    return None


def _as_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _is_number(value):
    if isinstance(value, bool) or value is None:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError, OverflowError):
        return False


def _entries(errors, items, title):
    """Return the submitted entries, or ``None`` when they are not a list."""
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        errors.append(f'{title} entries must be a list')
        return None
    if any(not isinstance(item, dict) for item in items):
        errors.append(f'{title} entries must be objects')
        return [item if isinstance(item, dict) else {} for item in items]
    return list(items)


def _labels_are_unique(labels):
    lowered = [label.strip().lower() for label in labels]
    return len(set(lowered)) == len(lowered)


def _check_scale(errors, value, title):
    if value is None or value < SCALE_MIN or value > SCALE_MAX:
        errors.append(f'{title} scale max must be between {SCALE_MIN} and {SCALE_MAX}')


def _check_fields(errors, item, prefix, text=(), numbers=(), integers=()):
    for field in text:
        if not str(item.get(field) or '').strip():
            errors.append(f'{prefix} {field} is required')
    for field in numbers:
        if not _is_number(item.get(field)):
            errors.append(f'{prefix} {field} must be numeric')
    for field in integers:
        if _as_int(item.get(field)) is None:
            errors.append(f'{prefix} {field} must be an integer')


def _check_levels(errors, levels, expected, kind):
    if len(levels) != expected:
        errors.append(f'Number of {kind} levels must match {kind}_scale_max ({expected})')

    labels = [str(level.get('label') or '') for level in levels]
    if any(not label.strip() for label in labels):
        errors.append(f'All {kind} levels must have labels')
    elif not _labels_are_unique(labels):
        errors.append(f'{kind.capitalize()} level labels must be unique')

    for index, level in enumerate(levels):
        prefix = f'{kind.capitalize()} level #{index}'
        _check_fields(errors, level, prefix, numbers=('score',), integers=('order',))
        color = level.get('color')
        if color is not None and not isinstance(color, str):
            errors.append(f'{prefix} color must be a string')


def _check_criteria_impacts(errors, impacts, index):
    for position, impact in enumerate(impacts):
        prefix = f'Criteria #{index} impact level #{position}'
        if not isinstance(impact, dict):
            errors.append(f'{prefix} must be an object')
            continue
        if not str(impact.get('impact_label') or impact.get('label') or '').strip():
            errors.append(f'{prefix} label is required')
        _check_fields(errors, impact, prefix, numbers=('score',), integers=('order',))


def _check_criterias(errors, criterias, impact_scale_max):
    for index, criteria in enumerate(criterias):
        # accept both {"criteria": {...}, "impacts": [...]} and flat entries
        info = criteria.get('criteria', criteria)
        if not isinstance(info, dict):
            errors.append(f'Criteria #{index} details must be an object')
            info = {}
        impacts = criteria.get('impacts')

        if not str(info.get('name') or '').strip():
            errors.append(f'Criteria #{index} name is required')
        if _as_int(info.get('order')) is None:
            errors.append(f'Criteria #{index} order must be an integer')

        if not impacts:
            errors.append(f'Criteria #{index} must have impact levels')
        elif not isinstance(impacts, (list, tuple)):
            errors.append(f'Criteria #{index} impact levels must be a list')
        else:
            if impact_scale_max is not None and len(impacts) != impact_scale_max:
                errors.append(
                    f'Criteria #{index} must define exactly {impact_scale_max} impact levels'
                )
            _check_criteria_impacts(errors, impacts, index)


def _check_score_levels(errors, score_levels):
    labels = [str(level.get('label') or '') for level in score_levels]
    if any(not label.strip() for label in labels):
        errors.append('All score levels must have labels')

    bounds = [(_as_int(level.get('min')), _as_int(level.get('max'))) for level in score_levels]
    if any(low is None or high is None or low < 1 or high < 1 for low, high in bounds):
        errors.append('Score level min and max values must be at least 1')
    elif any(low > high for low, high in bounds):
        errors.append('Score level min value cannot be greater than max value')

    if all(label.strip() for label in labels) and not _labels_are_unique(labels):
        errors.append('Score level labels must be unique')

    for index, level in enumerate(score_levels):
        _check_fields(errors, level, f'Score level #{index}',
                      text=('color',), integers=('order',))


def validate_configuration(config_data, impacts, probabilities, criterias=None, score_levels=None):
    """Return every consistency error of a candidate configuration.

    ``config_data`` carries the scalar fields (name, impact_scale_max,
    probability_scale_max, calculation_method, use_criterias); the other
    arguments are the child collections exactly as submitted. A collection
    that is not a list is reported once and its entries are not inspected.
    """
    errors = []
    impacts = _entries(errors, impacts, 'Impact level')
    probabilities = _entries(errors, probabilities, 'Probability level')
    criterias = _entries(errors, criterias, 'Criteria')
    score_levels = _entries(errors, score_levels, 'Score level')

    if not str(config_data.get('name') or '').strip():
        errors.append('Configuration name is required')

    impact_scale_max = _as_int(config_data.get('impact_scale_max'))
    probability_scale_max = _as_int(config_data.get('probability_scale_max'))
    _check_scale(errors, impact_scale_max, 'Impact')
    _check_scale(errors, probability_scale_max, 'Probability')

    if config_data.get('calculation_method') not in CALCULATION_METHODS:
        errors.append('Calculation method must be either "avg" or "max"')

    use_criterias = as_boolean(config_data.get('use_criterias'))
    if use_criterias is None:
        errors.append('Use criterias must be true or false')

    if impacts is not None:
        _check_levels(errors, impacts, impact_scale_max, 'impact')
    if probabilities is not None:
        _check_levels(errors, probabilities, probability_scale_max, 'probability')

    if criterias and use_criterias:
        _check_criterias(errors, criterias, impact_scale_max)

    if score_levels:
        _check_score_levels(errors, score_levels)

    return errors
