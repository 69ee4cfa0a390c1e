"""Persistence of risk configuration aggregates.

A configuration and its children (impact levels, probability levels,
criteria with their impact sub-scales, score levels) are always written as
one unit. Updates never diff child rows: every collection is deleted and
rebuilt from the submitted arrays inside the same transaction.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from .errors import (ConcurrentUpdateError, ConfigurationNotFoundError,
                     ConfigurationValidationError, PersistenceError)
from .models import (CriteriaImpact, RiskConfiguration, RiskCriteria, RiskImpact,
                     RiskProbability, RiskScoreLevel, db)
from .validator import as_boolean, validate_configuration

logger = logging.getLogger(__name__)

SCALAR_FIELDS = (
    'name', 'impact_scale_max', 'probability_scale_max', 'calculation_method', 'use_criterias',
)


def _aggregate_options():
    return [
        selectinload(RiskConfiguration.impacts),
        selectinload(RiskConfiguration.probabilities),
        selectinload(RiskConfiguration.criterias).selectinload(RiskCriteria.impacts),
        selectinload(RiskConfiguration.score_levels),
    ]


# =============================================================================
# Reads
# =============================================================================
def load_configuration(configuration_id):
    """Reload an aggregate from the database with every relation populated."""
    return db.session.get(
        RiskConfiguration, configuration_id,
        options=_aggregate_options(), populate_existing=True,
    )


def list_configurations(organization_id):
    return (
        RiskConfiguration.query
        .options(*_aggregate_options())
        .filter_by(organization_id=organization_id)
        .order_by(RiskConfiguration.id)
        .all()
    )


def get_configuration(organization_id, configuration_id):
    configuration = (
        RiskConfiguration.query
        .options(*_aggregate_options())
        .filter_by(organization_id=organization_id, id=configuration_id)
        .first()
    )
    if configuration is None:
        raise ConfigurationNotFoundError(f'Risk configuration {configuration_id} not found')
    return configuration


def get_active_configuration(organization_id):
    configuration = (
        RiskConfiguration.query
        .options(*_aggregate_options())
        .filter_by(organization_id=organization_id, is_active=True)
        .first()
    )
    if configuration is None:
        raise ConfigurationNotFoundError('No risk configuration found for organization')
    return configuration


# =============================================================================
# Child builders
# =============================================================================
def _apply_scalars(configuration, config_data):
    for field in SCALAR_FIELDS:
        if field not in config_data:
            continue
        value = config_data[field]
        if field in ('impact_scale_max', 'probability_scale_max'):
            value = int(value)
        elif field == 'use_criterias':
            value = bool(as_boolean(value))
        setattr(configuration, field, value)


def _build_impacts(impacts):
    return [
        RiskImpact(
            label=data['label'],
            score=float(data['score']),
            color=data.get('color') or None,
            order=int(data['order']),
        )
        for data in impacts
    ]


def _build_probabilities(probabilities):
    return [
        RiskProbability(label=data['label'], score=float(data['score']), order=int(data['order']))
        for data in probabilities
    ]


def _build_score_levels(score_levels):
    return [
        RiskScoreLevel(
            label=data['label'],
            min=int(data['min']),
            max=int(data['max']),
            color=data['color'],
            order=int(data['order']),
        )
        for data in score_levels
    ]


def _build_criterias(criterias, impact_levels):
    levels_by_order = {level.order: level for level in impact_levels}
    built = []
    for data in criterias:
        info = data.get('criteria', data)
        criteria = RiskCriteria(
            name=info['name'],
            description=info.get('description'),
            order=int(info['order']),
        )
        for impact in data.get('impacts') or []:
            order = int(impact['order'])
            criteria.impacts.append(CriteriaImpact(
                impact_label=impact.get('impact_label') or impact.get('label'),
                score=float(impact['score']),
                order=order,
                impact_level=levels_by_order.get(order),
            ))
        built.append(criteria)
    return built


def _attach_children(configuration, impacts, probabilities, criterias, score_levels):
    configuration.impacts = _build_impacts(impacts)
    configuration.probabilities = _build_probabilities(probabilities)
    configuration.score_levels = _build_score_levels(score_levels)
    if configuration.use_criterias:
        configuration.criterias = _build_criterias(criterias, configuration.impacts)


def _validate_or_raise(config_data, impacts, probabilities, criterias, score_levels):
    errors = validate_configuration(config_data, impacts, probabilities, criterias, score_levels)
    if errors:
        raise ConfigurationValidationError(errors)


# =============================================================================
# Writes
# =============================================================================
def create_configuration(organization_id, config_data, impacts, probabilities,
                         criterias=(), score_levels=()):
    """Persist a new configuration together with all of its children.

    The first configuration of an organization without an active one is
    activated immediately.
    """
    _validate_or_raise(config_data, impacts, probabilities, criterias, score_levels)

    try:
        has_active = RiskConfiguration.query.filter_by(
            organization_id=organization_id, is_active=True
        ).first() is not None

        configuration = RiskConfiguration(organization_id=organization_id, is_active=not has_active)
        _apply_scalars(configuration, config_data)
        _attach_children(configuration, impacts, probabilities, criterias, score_levels)

        db.session.add(configuration)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Failed to create risk configuration for organization %s: %s',
                     organization_id, e)
        raise PersistenceError(f'Failed to create risk configuration: {e}') from e
    except Exception:
        db.session.rollback()
        raise

    logger.info('Created risk configuration %s for organization %s (active=%s)',
                configuration.id, organization_id, configuration.is_active)
    return load_configuration(configuration.id)


def update_configuration(configuration, config_data, impacts, probabilities,
                         criterias=(), score_levels=(), expected_version=None):
    """Replace a configuration and every child collection atomically.

    ``expected_version`` is the version the caller edited; when omitted the
    version loaded in ``configuration`` is used. Either way a concurrent
    writer that got there first makes this call fail without writing.
    """
    _validate_or_raise(config_data, impacts, probabilities, criterias, score_levels)

    configuration_id = configuration.id
    if expected_version is None:
        expected_version = configuration.version

    try:
        bumped = (
            RiskConfiguration.query
            .filter_by(id=configuration_id, version=int(expected_version))
            .update({'version': RiskConfiguration.version + 1}, synchronize_session=False)
        )
        if not bumped:
            raise ConcurrentUpdateError(
                f'Risk configuration {configuration_id} was modified by another user'
            )

        _apply_scalars(configuration, config_data)

        configuration.impacts.clear()
        configuration.probabilities.clear()
        configuration.criterias.clear()
        configuration.score_levels.clear()
        db.session.flush()

        _attach_children(configuration, impacts, probabilities, criterias, score_levels)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Failed to update risk configuration %s: %s', configuration_id, e)
        raise PersistenceError(f'Failed to update risk configuration: {e}') from e
    except Exception:
        db.session.rollback()
        raise

    logger.info('Updated risk configuration %s', configuration_id)
    return load_configuration(configuration_id)


def delete_configuration(configuration):
    """Delete a configuration and every row it owns.

    Nothing else is checked: risks elsewhere in the application only know
    the organization, never the configuration itself.
    """
    configuration_id = configuration.id
    try:
        db.session.delete(configuration)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Failed to delete risk configuration %s: %s', configuration_id, e)
        raise PersistenceError(f'Failed to delete risk configuration: {e}') from e
    except Exception:
        db.session.rollback()
        raise

    logger.info('Deleted risk configuration %s', configuration_id)


def activate_configuration(configuration):
    """Make ``configuration`` the single active one of its organization."""
    configuration_id = configuration.id
    organization_id = configuration.organization_id
    try:
        (
            RiskConfiguration.query
            .filter(RiskConfiguration.organization_id == organization_id,
                    RiskConfiguration.id != configuration_id,
                    RiskConfiguration.is_active.is_(True))
            .update({'is_active': False}, synchronize_session=False)
        )
        (
            RiskConfiguration.query
            .filter_by(id=configuration_id)
            .update({'is_active': True}, synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Failed to activate risk configuration %s: %s', configuration_id, e)
        raise PersistenceError(f'Failed to activate risk configuration: {e}') from e
    except Exception:
        db.session.rollback()
        raise

    logger.info('Activated risk configuration %s for organization %s',
                configuration_id, organization_id)
    return load_configuration(configuration_id)
