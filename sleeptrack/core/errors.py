class HealthImportError(Exception):
    """Base class for failures of the health-export import pipeline."""


class InvalidInputError(HealthImportError):
    """The upload itself is unusable (missing, wrong extension)."""


class InvalidFormatError(HealthImportError):
    """The archive was accepted but is not a readable health export."""
