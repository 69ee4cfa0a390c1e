"""Risk score evaluation against an organization's configuration.

Scores from several dimensions (impact and probability, or one score per
criterion) are combined with the configuration's ``calculation_method``:
``max`` keeps the highest score, ``avg`` takes the arithmetic mean.
"""
import logging
import math

from .errors import PreconditionError
from .store import get_active_configuration

logger = logging.getLogger(__name__)


def _check_score(name, value):
    score = float(value)
    if not math.isfinite(score):
        raise ValueError(f'{name} must be a finite number')
    if score < 0:
        raise ValueError(f'{name} must be greater than or equal to 0')
    return score


def _level_for_score(levels, score):
    """Highest level whose score does not exceed ``score``."""
    candidates = [level for level in levels if level.score <= score]
    if not candidates:
        return None
    return max(candidates, key=lambda level: level.score)


def _distance(level, score):
    if score < level.min:
        return level.min - score
    if score > level.max:
        return score - level.max
    return 0


class RiskCalculator:
    """Evaluates scores for one loaded configuration.

    The configuration is expected to have its impacts, probabilities,
    criterias and score levels loaded; nothing here writes to the database.
    """

    def __init__(self, configuration):
        self.configuration = configuration

    @property
    def method(self):
        return self.configuration.calculation_method

    def reduce(self, scores):
        scores = [float(score) for score in scores]
        if not scores:
            return 0
        if self.method == 'max':
            return max(scores)
        return sum(scores) / len(scores)

    def impact_level_for(self, score):
        return _level_for_score(self.configuration.impacts, score)

    def probability_level_for(self, score):
        return _level_for_score(self.configuration.probabilities, score)

    def classify(self, score):
        """Return the score level for ``score``.

        Levels are tried in display order and the first interval containing
        the score wins. A score that falls in a gap (or outside every
        interval) goes to the nearest level, the higher-ordered one on a tie.
        """
        levels = sorted(self.configuration.score_levels, key=lambda level: level.order)
        if not levels:
            return None

        for level in levels:
            if level.contains(score):
                return level

        nearest = min(levels, key=lambda level: (_distance(level, score), -level.order))
        logger.debug('Score %s is not covered by configuration %s, using nearest level %r',
                     score, self.configuration.id, nearest.label)
        return nearest

    def calculate_risk_score(self, impact_score, probability_score):
        impact_score = _check_score('impact_score', impact_score)
        probability_score = _check_score('probability_score', probability_score)

        risk_score = self.reduce([impact_score, probability_score])
        return {
            'risk_score': risk_score,
            'impact_score': impact_score,
            'probability_score': probability_score,
            'impact_level': self.impact_level_for(impact_score),
            'probability_level': self.probability_level_for(probability_score),
            'score_level': self.classify(risk_score),
            'configuration': self.configuration,
        }

    def calculate_risk_score_with_criteria(self, criteria_scores):
        if not self.configuration.use_criterias:
            raise PreconditionError('Risk configuration does not use criteria')

        criteria_scores = {
            key: _check_score(f'criteria score "{key}"', value)
            for key, value in dict(criteria_scores).items()
        }
        risk_score = self.reduce(criteria_scores.values())
        return {
            'risk_score': risk_score,
            'criteria_scores': criteria_scores,
            'score_level': self.classify(risk_score),
            'configuration': self.configuration,
        }


def calculate_risk_score(organization_id, impact_score, probability_score):
    configuration = get_active_configuration(organization_id)
    return RiskCalculator(configuration).calculate_risk_score(impact_score, probability_score)


def calculate_risk_score_with_criteria(organization_id, criteria_scores):
    configuration = get_active_configuration(organization_id)
    return RiskCalculator(configuration).calculate_risk_score_with_criteria(criteria_scores)


def classify_score(organization_id, score):
    configuration = get_active_configuration(organization_id)
    return RiskCalculator(configuration).classify(_check_score('score', score))
