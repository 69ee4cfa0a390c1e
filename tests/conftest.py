"""
Test fixtures shared across the risk configuration tests.
"""

import pytest

from riskconfig import create_app
from riskconfig.config import TestConfig
from riskconfig.models import Organization, Role, User, db

IMPACT_LABELS = ['Negligible', 'Minor', 'Moderate', 'Major', 'Critical',
                 'Severe', 'Grave', 'Extreme', 'Disastrous', 'Catastrophic']
PROBABILITY_LABELS = ['Rare', 'Unlikely', 'Possible', 'Likely', 'Almost certain',
                      'Frequent', 'Very frequent', 'Expected', 'Constant', 'Certain']

SCORE_LEVELS = [
    {'label': 'Low', 'min': 1, 'max': 8, 'color': '#22C55E', 'order': 1},
    {'label': 'Medium', 'min': 9, 'max': 17, 'color': '#EAB308', 'order': 2},
    {'label': 'High', 'min': 18, 'max': 25, 'color': '#EF4444', 'order': 3},
]


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        for role_name in ('Admin', 'Pioneer', 'Reporter'):
            db.session.add(Role(name=role_name))
        db.session.add_all([Organization(name='Acme'), Organization(name='Globex')])
        db.session.commit()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Push an application context for tests that talk to the store directly."""
    with app.app_context():
        yield


@pytest.fixture
def org_id(app):
    with app.app_context():
        return Organization.query.filter_by(name='Acme').one().id


@pytest.fixture
def other_org_id(app):
    with app.app_context():
        return Organization.query.filter_by(name='Globex').one().id


def _create_user(app, username, role_name, organization_id):
    with app.app_context():
        role = Role.query.filter_by(name=role_name).one()
        user = User(username=username, full_name=username.title(),
                    role_id=role.id, organization_id=organization_id)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def users(app, org_id, other_org_id):
    return {
        'admin': _create_user(app, 'admin', 'Admin', org_id),
        'pioneer': _create_user(app, 'pioneer', 'Pioneer', org_id),
        'reporter': _create_user(app, 'reporter', 'Reporter', org_id),
        'other_admin': _create_user(app, 'other_admin', 'Admin', other_org_id),
    }


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client, users):
    def _login(name):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(users[name])
            sess['_fresh'] = True
        return client
    return _login


@pytest.fixture
def make_payload():
    """Factory for a complete configuration payload as the edit form submits it."""
    def _make(impact_scale_max=5, probability_scale_max=5, calculation_method='max',
              use_criterias=False, criterias=None, score_levels=None,
              name='Default Risk Config'):
        return {
            'name': name,
            'impact_scale_max': impact_scale_max,
            'probability_scale_max': probability_scale_max,
            'calculation_method': calculation_method,
            'use_criterias': use_criterias,
            'impacts': [
                {'label': IMPACT_LABELS[i], 'score': i + 1, 'order': i + 1, 'color': '#00000%d' % i}
                for i in range(impact_scale_max)
            ],
            'probabilities': [
                {'label': PROBABILITY_LABELS[i], 'score': i + 1, 'order': i + 1}
                for i in range(probability_scale_max)
            ],
            'criterias': criterias or [],
            'score_levels': [dict(level) for level in (score_levels or SCORE_LEVELS)],
        }
    return _make


@pytest.fixture
def make_criteria():
    def _make(name, order, impact_scale_max=5, description=None):
        return {
            'name': name,
            'description': description,
            'order': order,
            'impacts': [
                {'impact_label': IMPACT_LABELS[i], 'score': i + 1, 'order': i + 1}
                for i in range(impact_scale_max)
            ],
        }
    return _make


@pytest.fixture
def split():
    """Turn a payload into the positional arguments the store expects."""
    def _split(payload):
        config_data = {key: payload[key] for key in (
            'name', 'impact_scale_max', 'probability_scale_max',
            'calculation_method', 'use_criterias',
        )}
        return (config_data, payload['impacts'], payload['probabilities'],
                payload['criterias'], payload['score_levels'])
    return _split
