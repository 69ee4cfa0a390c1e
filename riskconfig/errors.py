class RiskConfigurationError(Exception):
    """Base class for every error raised by the risk configuration engine."""


class ConfigurationValidationError(RiskConfigurationError):
    """The submitted configuration is inconsistent.

    ``errors`` holds the full list produced by the validator so the caller
    can report every problem at once.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__('; '.join(self.errors) or 'Invalid risk configuration')


class ConfigurationNotFoundError(RiskConfigurationError):
    pass


class PreconditionError(RiskConfigurationError):
    pass


class PersistenceError(RiskConfigurationError):
    """A write failed and the transaction was rolled back."""


class ConcurrentUpdateError(RiskConfigurationError):
    """The configuration changed since the caller loaded it."""
