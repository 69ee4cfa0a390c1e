from riskconfig import create_app
from riskconfig.models import Organization, Role, User, db
from riskconfig.store import create_configuration

app = create_app()

IMPACT_LABELS = ['Negligible', 'Minor', 'Moderate', 'Major', 'Critical']
PROBABILITY_LABELS = ['Rare', 'Unlikely', 'Possible', 'Likely', 'Almost certain']
IMPACT_COLORS = ['#22C55E', '#84CC16', '#EAB308', '#F97316', '#EF4444']

DEFAULT_SCORE_LEVELS = [
    {'label': 'Low', 'min': 1, 'max': 8, 'color': '#22C55E', 'order': 1},
    {'label': 'Medium', 'min': 9, 'max': 17, 'color': '#EAB308', 'order': 2},
    {'label': 'High', 'min': 18, 'max': 25, 'color': '#EF4444', 'order': 3},
]


def default_configuration():
    config_data = {
        'name': 'Default Risk Config',
        'impact_scale_max': 5,
        'probability_scale_max': 5,
        'calculation_method': 'max',
        'use_criterias': False,
    }
    impacts = [
        {'label': label, 'score': i + 1, 'order': i + 1, 'color': IMPACT_COLORS[i]}
        for i, label in enumerate(IMPACT_LABELS)
    ]
    probabilities = [
        {'label': label, 'score': i + 1, 'order': i + 1}
        for i, label in enumerate(PROBABILITY_LABELS)
    ]
    return config_data, impacts, probabilities, [], DEFAULT_SCORE_LEVELS


# =============================================================================
# Database Initialization Function
# =============================================================================
def initialize_database():
    with app.app_context():
        print("Starting database initialization...")

        db.drop_all()
        print("All tables dropped successfully.")
        db.create_all()
        print("All tables recreated successfully.")

        for role_name in ['Admin', 'Pioneer', 'Reporter']:
            if not Role.query.filter_by(name=role_name).first():
                db.session.add(Role(name=role_name))
        db.session.commit()
        print("Roles committed.")

        organization = Organization(name='Demo Organization')
        db.session.add(organization)
        db.session.commit()
        print("Organization committed.")

        users_to_create = [
            {'username': 'admin', 'full_name': 'System administrator', 'role': 'Admin'},
            {'username': 'pioneer', 'full_name': 'Risk champion', 'role': 'Pioneer'},
            {'username': 'reporter', 'full_name': 'Reporter', 'role': 'Reporter'},
        ]
        for user_data in users_to_create:
            role = Role.query.filter_by(name=user_data['role']).first()
            db.session.add(User(
                username=user_data['username'],
                full_name=user_data['full_name'],
                role_id=role.id,
                organization_id=organization.id,
            ))
        db.session.commit()
        print("Default users committed.")

        configuration = create_configuration(organization.id, *default_configuration())
        print(f"Default risk configuration {configuration.id} committed.")

        print("Database initialization complete.")


if __name__ == '__main__':
    initialize_database()
