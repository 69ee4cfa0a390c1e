"""
Tests for the configuration validator — pure checks, no database.
"""

import pytest

from riskconfig.validator import validate_configuration


def _validate(payload, split):
    return validate_configuration(*split(payload))


def test_complete_configuration_is_valid(make_payload, split):
    assert _validate(make_payload(), split) == []


@pytest.mark.parametrize("scale", range(2, 11))
def test_impact_count_must_match_scale(scale, make_payload, split):
    payload = make_payload(impact_scale_max=scale)
    assert _validate(payload, split) == []

    short = make_payload(impact_scale_max=scale)
    short['impacts'] = short['impacts'][:-1]
    errors = _validate(short, split)
    assert f'Number of impact levels must match impact_scale_max ({scale})' in errors

    long = make_payload(impact_scale_max=scale)
    long['impacts'].append({'label': 'Extra', 'score': 99, 'order': scale + 1})
    errors = _validate(long, split)
    assert f'Number of impact levels must match impact_scale_max ({scale})' in errors


def test_probability_count_must_match_scale(make_payload, split):
    payload = make_payload(probability_scale_max=4)
    payload['probabilities'].pop()
    errors = _validate(payload, split)
    assert errors == ['Number of probability levels must match probability_scale_max (4)']


def test_all_violations_are_reported_together(make_payload, split):
    payload = make_payload()
    payload['name'] = '  '
    payload['impact_scale_max'] = 11
    payload['probability_scale_max'] = 1
    payload['calculation_method'] = 'sum'

    errors = _validate(payload, split)

    assert 'Configuration name is required' in errors
    assert 'Impact scale max must be between 2 and 10' in errors
    assert 'Probability scale max must be between 2 and 10' in errors
    assert 'Calculation method must be either "avg" or "max"' in errors
    assert 'Number of impact levels must match impact_scale_max (11)' in errors
    assert 'Number of probability levels must match probability_scale_max (1)' in errors


def test_non_numeric_scale_is_reported_not_raised(make_payload, split):
    payload = make_payload()
    payload['impact_scale_max'] = 'five'
    errors = _validate(payload, split)
    assert 'Impact scale max must be between 2 and 10' in errors


def test_level_labels_must_be_unique(make_payload, split):
    payload = make_payload(impact_scale_max=3, probability_scale_max=3)
    payload['impacts'][1]['label'] = payload['impacts'][0]['label'].upper()
    payload['probabilities'][2]['label'] = ''

    errors = _validate(payload, split)

    assert 'Impact level labels must be unique' in errors
    assert 'All probability levels must have labels' in errors


def test_criteria_need_name_and_impacts(make_payload, make_criteria, split):
    nameless = make_criteria('', 1)
    empty = make_criteria('Financial', 2)
    empty['impacts'] = []
    payload = make_payload(use_criterias=True, criterias=[nameless, empty])

    errors = _validate(payload, split)

    assert 'Criteria #0 name is required' in errors
    assert 'Criteria #1 must have impact levels' in errors


def test_criteria_sub_scale_must_match_impact_scale(make_payload, make_criteria, split):
    criteria = make_criteria('Reputation', 1, impact_scale_max=3)
    payload = make_payload(use_criterias=True, criterias=[criteria])

    errors = _validate(payload, split)

    assert errors == ['Criteria #0 must define exactly 5 impact levels']


def test_wrapped_criteria_entries_are_accepted(make_payload, make_criteria, split):
    criteria = make_criteria('Legal', 1)
    wrapped = {'criteria': {'name': criteria['name'], 'order': 1}, 'impacts': criteria['impacts']}
    payload = make_payload(use_criterias=True, criterias=[wrapped])
    assert _validate(payload, split) == []


def test_criteria_ignored_when_not_used(make_payload, make_criteria, split):
    payload = make_payload(use_criterias=False, criterias=[make_criteria('', 1)])
    assert _validate(payload, split) == []


def test_score_level_bounds(make_payload, split):
    levels = [
        {'label': 'Low', 'min': 5, 'max': 2, 'color': '#00FF00', 'order': 1},
        {'label': 'low', 'min': 6, 'max': 25, 'color': '#FF0000', 'order': 2},
    ]
    errors = _validate(make_payload(score_levels=levels), split)
    assert 'Score level min value cannot be greater than max value' in errors
    assert 'Score level labels must be unique' in errors

    levels = [{'label': 'Low', 'min': 0, 'max': 25, 'color': '#00FF00', 'order': 1}]
    errors = _validate(make_payload(score_levels=levels), split)
    assert errors == ['Score level min and max values must be at least 1']


def test_validator_does_not_mutate_input(make_payload, split):
    payload = make_payload()
    before = repr(payload)
    _validate(payload, split)
    assert repr(payload) == before


@pytest.mark.parametrize("field,title", [
    ('impacts', 'Impact level'),
    ('probabilities', 'Probability level'),
    ('score_levels', 'Score level'),
])
@pytest.mark.parametrize("value", [5, 'five', {'label': 'Low'}])
def test_collection_that_is_not_a_list_is_reported(field, title, value, make_payload, split):
    payload = make_payload()
    payload[field] = value

    errors = _validate(payload, split)

    assert f'{title} entries must be a list' in errors


def test_criteria_collection_that_is_not_a_list_is_reported(make_payload, split):
    payload = make_payload(use_criterias=True)
    payload['criterias'] = 5
    assert _validate(payload, split) == ['Criteria entries must be a list']


def test_malformed_criteria_shapes_are_reported(make_payload, make_criteria, split):
    scalar_impacts = make_criteria('Financial', 1)
    scalar_impacts['impacts'] = 5
    bad_wrapper = {'criteria': 'Legal', 'impacts': make_criteria('Legal', 2)['impacts']}
    bad_entry = make_criteria('Reputation', 3)
    bad_entry['impacts'][2] = 'high'
    payload = make_payload(use_criterias=True,
                           criterias=[scalar_impacts, bad_wrapper, bad_entry])

    errors = _validate(payload, split)

    assert 'Criteria #0 impact levels must be a list' in errors
    assert 'Criteria #1 details must be an object' in errors
    assert 'Criteria #1 name is required' in errors
    assert 'Criteria #2 impact level #2 must be an object' in errors


def test_level_items_need_numeric_score_and_integer_order(make_payload, split):
    payload = make_payload()
    del payload['impacts'][0]['score']
    payload['impacts'][1]['order'] = 'second'
    payload['probabilities'][2]['score'] = 'likely'
    payload['probabilities'][3]['order'] = 2.5
    payload['impacts'][4]['color'] = ['#FF0000']

    errors = _validate(payload, split)

    assert errors == [
        'Impact level #0 score must be numeric',
        'Impact level #1 order must be an integer',
        'Impact level #4 color must be a string',
        'Probability level #2 score must be numeric',
        'Probability level #3 order must be an integer',
    ]


@pytest.mark.parametrize("score", [None, True, float('nan'), float('inf'), 'n/a'])
def test_non_numeric_level_scores_are_reported(score, make_payload, split):
    payload = make_payload()
    payload['impacts'][0]['score'] = score
    assert _validate(payload, split) == ['Impact level #0 score must be numeric']


def test_numeric_strings_are_accepted(make_payload, split):
    payload = make_payload()
    payload['impacts'][0]['score'] = '1.5'
    payload['impacts'][0]['order'] = '1'
    assert _validate(payload, split) == []


def test_criteria_items_are_checked(make_payload, make_criteria, split):
    criteria = make_criteria('Financial', None)
    criteria['impacts'][0]['impact_label'] = ''
    del criteria['impacts'][1]['score']
    criteria['impacts'][2]['order'] = None
    payload = make_payload(use_criterias=True, criterias=[criteria])

    errors = _validate(payload, split)

    assert errors == [
        'Criteria #0 order must be an integer',
        'Criteria #0 impact level #0 label is required',
        'Criteria #0 impact level #1 score must be numeric',
        'Criteria #0 impact level #2 order must be an integer',
    ]


def test_score_levels_need_color_and_order(make_payload, split):
    payload = make_payload()
    del payload['score_levels'][0]['color']
    payload['score_levels'][2]['order'] = 'last'

    errors = _validate(payload, split)

    assert errors == [
        'Score level #0 color is required',
        'Score level #2 order must be an integer',
    ]


@pytest.mark.parametrize("value,valid", [
    (True, True), (False, True), (1, True), (0, True), ('1', True), ('0', True),
    ('true', True), ('false', True), (None, True), ('yes', False), (2, False), ([], False),
])
def test_use_criterias_flag_values(value, valid, make_payload, split):
    payload = make_payload()
    payload['use_criterias'] = value

    errors = _validate(payload, split)

    assert (errors == []) is valid
    if not valid:
        assert errors == ['Use criterias must be true or false']
