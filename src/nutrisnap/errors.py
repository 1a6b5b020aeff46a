"""Error taxonomy for ingestion and daily tracking."""


class NutriSnapError(Exception):
    """Base class for application errors."""


class ValidationError(NutriSnapError):
    """Raised for a missing or invalid image or request input."""


class StorageError(NutriSnapError):
    """Raised when the blob store fails to write, read or remove an image."""


class AnalysisError(NutriSnapError):
    """Raised when food analysis fails or returns an unusable response."""


class PersistenceError(NutriSnapError):
    """Raised when a log or profile read/write fails."""


class ConfigurationError(NutriSnapError):
    """Raised for configuration that cannot be resolved by defaults."""


class StageTimeoutError(NutriSnapError):
    """Raised when an external call exceeds its time limit."""


class IngestionError(NutriSnapError):
    """Terminal error for a failed food image submission."""

    def __init__(
        self,
        stage: str,
        cause: NutriSnapError,
        orphaned_image_ref: str | None = None,
    ) -> None:
        super().__init__(f"Ingestion failed at stage '{stage}': {cause}")
        self.stage = stage
        self.cause = cause
        self.orphaned_image_ref = orphaned_image_ref
