from datetime import datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

CALCULATION_METHODS = ('avg', 'max')

MANAGE_RISK_CONFIGURATIONS = 'manage risk configurations'
VIEW_RISK_CONFIGURATIONS = 'view risk configurations'

ROLE_PERMISSIONS = {
    'Admin': {MANAGE_RISK_CONFIGURATIONS, VIEW_RISK_CONFIGURATIONS},
    'Pioneer': {VIEW_RISK_CONFIGURATIONS},
    'Reporter': set(),
}


# =============================================================================
# Organization context
# =============================================================================
class Organization(db.Model):
    __tablename__ = 'organizations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    users = db.relationship('User', backref='organization', lazy=True)


class Role(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    users = db.relationship('User', backref='role', lazy=True)

    @property
    def permissions(self):
        return ROLE_PERMISSIONS.get(self.name, set())


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(150), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=True)
    role_id = db.Column(db.Integer, db.ForeignKey('role.id'), nullable=False)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False)

    def has_permission(self, permission):
        return self.role is not None and permission in self.role.permissions


# =============================================================================
# Risk configuration aggregate
# =============================================================================
class RiskConfiguration(db.Model):
    __tablename__ = 'risk_configurations'
    __table_args__ = (
        db.Index('ix_risk_configurations_org_name', 'organization_id', 'name'),
        # at most one active configuration per organization
        db.Index(
            'uq_risk_configurations_active',
            'organization_id',
            unique=True,
            sqlite_where=db.text('is_active = 1'),
            postgresql_where=db.text('is_active'),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    impact_scale_max = db.Column(db.SmallInteger, nullable=False)
    probability_scale_max = db.Column(db.SmallInteger, nullable=False)
    calculation_method = db.Column(db.String(3), nullable=False, default='avg')
    use_criterias = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = db.relationship(
        'Organization', backref=db.backref('risk_configurations', lazy=True)
    )
    impacts = db.relationship(
        'RiskImpact', backref='configuration', order_by='RiskImpact.order',
        cascade='all, delete-orphan',
    )
    probabilities = db.relationship(
        'RiskProbability', backref='configuration', order_by='RiskProbability.order',
        cascade='all, delete-orphan',
    )
    criterias = db.relationship(
        'RiskCriteria', backref='configuration', order_by='RiskCriteria.order',
        cascade='all, delete-orphan',
    )
    score_levels = db.relationship(
        'RiskScoreLevel', backref='configuration', order_by='RiskScoreLevel.order',
        cascade='all, delete-orphan',
    )

    def __repr__(self):
        return f'<RiskConfiguration {self.id} {self.name!r}>'


class RiskImpact(db.Model):
    __tablename__ = 'risk_impacts'
    __table_args__ = (
        db.Index('ix_risk_impacts_config_order', 'risk_configuration_id', 'order'),
    )

    id = db.Column(db.Integer, primary_key=True)
    risk_configuration_id = db.Column(
        db.Integer, db.ForeignKey('risk_configurations.id', ondelete='CASCADE'), nullable=False
    )
    label = db.Column(db.String(255), nullable=False)
    score = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False)
    color = db.Column(db.String(7), nullable=True)
    order = db.Column(db.SmallInteger, nullable=False)


class RiskProbability(db.Model):
    __tablename__ = 'risk_probabilities'
    __table_args__ = (
        db.Index('ix_risk_probabilities_config_order', 'risk_configuration_id', 'order'),
    )

    id = db.Column(db.Integer, primary_key=True)
    risk_configuration_id = db.Column(
        db.Integer, db.ForeignKey('risk_configurations.id', ondelete='CASCADE'), nullable=False
    )
    label = db.Column(db.String(255), nullable=False)
    score = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False)
    order = db.Column(db.SmallInteger, nullable=False)


class RiskCriteria(db.Model):
    __tablename__ = 'risk_criterias'

    id = db.Column(db.Integer, primary_key=True)
    risk_configuration_id = db.Column(
        db.Integer, db.ForeignKey('risk_configurations.id', ondelete='CASCADE'), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    order = db.Column(db.SmallInteger, nullable=False)

    impacts = db.relationship(
        'CriteriaImpact', backref='criteria', order_by='CriteriaImpact.order',
        cascade='all, delete-orphan',
    )


class CriteriaImpact(db.Model):
    __tablename__ = 'criteria_impacts'

    id = db.Column(db.Integer, primary_key=True)
    criteria_id = db.Column(
        db.Integer, db.ForeignKey('risk_criterias.id', ondelete='CASCADE'), nullable=False
    )
    # the configuration-wide impact level this entry is aligned with
    impact_level_id = db.Column(
        db.Integer, db.ForeignKey('risk_impacts.id', ondelete='SET NULL'), nullable=True
    )
    impact_label = db.Column(db.String(255), nullable=False)
    score = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False)
    order = db.Column(db.SmallInteger, nullable=False)

    impact_level = db.relationship('RiskImpact')


class RiskScoreLevel(db.Model):
    __tablename__ = 'risk_score_levels'
    __table_args__ = (
        db.UniqueConstraint('risk_configuration_id', 'order', name='unique_score_level_order'),
        db.Index('ix_risk_score_levels_config_range', 'risk_configuration_id', 'min', 'max'),
    )

    id = db.Column(db.Integer, primary_key=True)
    risk_configuration_id = db.Column(
        db.Integer, db.ForeignKey('risk_configurations.id', ondelete='CASCADE'), nullable=False
    )
    label = db.Column(db.String(255), nullable=False)
    min = db.Column(db.Integer, nullable=False)
    max = db.Column(db.Integer, nullable=False)
    color = db.Column(db.String(7), nullable=False)
    order = db.Column(db.SmallInteger, nullable=False)

    def contains(self, score):
        return self.min <= score <= self.max
