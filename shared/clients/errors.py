"""Error taxonomy shared by all provider clients.

Every error carries a ``kind`` tag so service boundaries can turn it into a
value (chat result, bulk sync summary, fallback context) without leaking the
raw provider payload.
"""


class BridgeError(Exception):
    """Base class of all errors raised by the provider layer."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BridgeError, ValueError):
    """A required setting is missing or invalid."""

    kind = "configuration_error"


class TransportError(BridgeError):
    """The provider could not be reached (connection error, timeout)."""

    kind = "transport_error"


class ProviderError(BridgeError):
    """The provider answered with a non-success status."""

    kind = "provider_error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotSupportedError(BridgeError):
    """The selected backend lacks the requested capability."""

    kind = "not_supported"


class DataError(BridgeError):
    """The provider answered with an unexpected response shape."""

    kind = "data_error"


class NoEmbeddingError(DataError):
    """The embedding backend returned no vector for a non-empty input."""


class InputValidationError(BridgeError):
    """Caller input was rejected before any provider was contacted."""

    kind = "validation_error"


# error kinds caused by the caller or the site configuration, answered with 400
CLIENT_ERROR_KINDS = (ConfigurationError.kind, InputValidationError.kind, NotSupportedError.kind)


def get_status_code(kind: str | None) -> int:
    return 400 if kind in CLIENT_ERROR_KINDS else 500
