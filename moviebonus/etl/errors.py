"""Exception taxonomy of the sync pipeline.

Only authorization and configuration errors ever reach the caller of a
run. Source and persistence failures are converted to ``ErrorRecord``
values at the adapter and gateway boundaries.
"""


class MovieBonusError(Exception):
    """Base exception for the movie bonus pipeline."""


class AuthorizationError(MovieBonusError):
    """Trigger credential missing or invalid (no side effects, not retried)."""


class ConfigurationError(MovieBonusError):
    """A required secret or setting is absent; the trigger fails closed."""


class SourceFetchError(MovieBonusError):
    """A source adapter failed to produce data.

    Attributes:
        source: Adapter name the failure belongs to.
    """

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.detail = message


class PersistencePrimaryFailure(MovieBonusError):
    """The primary backend rejected or could not take the batch."""


class PersistenceFallbackFailure(MovieBonusError):
    """The direct write of one record failed.

    Attributes:
        external_id: Key of the record that could not be written.
    """

    def __init__(self, external_id: str, message: str) -> None:
        super().__init__(f"{external_id}: {message}")
        self.external_id = external_id
        self.detail = message


class PipelineTimeout(MovieBonusError):
    """The run exceeded its wall-clock budget."""
