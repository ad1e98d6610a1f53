"""Error taxonomy shared by the stores, registries and the HTTP layer."""


class RecordError(Exception):
    """Base class for every failure raised by the record service."""


class ValidationError(RecordError):
    """A required field is missing, empty or holds an invalid value."""


class NotFoundError(RecordError):
    """A referenced patient or doctor does not exist."""


class IndexOutOfRangeError(RecordError):
    """A report position is outside the patient's report list."""


class PermissionDeniedError(RecordError):
    """The caller's role does not allow the requested action."""


class StoreError(RecordError):
    """The underlying keyed store could not complete an operation."""


class ConfigurationError(RecordError):
    """Settings could not be parsed from the environment."""
