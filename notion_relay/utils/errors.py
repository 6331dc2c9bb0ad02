"""Error taxonomy shared by the relay components."""


class RelayError(Exception):
    """Base class for all errors surfaced to relay callers."""

    kind: str = "internal_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_payload(self) -> dict[str, str]:
        """Structured error payload returned to callers."""
        payload = {"kind": self.kind, "message": self.message}
        if self.code is not None:
            payload["code"] = self.code
        return payload


class MissingCredentialError(RelayError):
    """Raised when a request carries no upstream API credential."""

    kind = "missing_credential"


class MissingParameterError(RelayError):
    """Raised when a required identifier or body field is absent."""

    kind = "missing_parameter"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class UpstreamError(RelayError):
    """Non-2xx response from the Notion API."""

    kind = "upstream_error"

    def __init__(self, status: int, message: str, code: str | None = None):
        super().__init__(message, code)
        self.status = status


class TransportError(RelayError):
    """Network failure while reaching the Notion API."""

    kind = "transport_error"


class ExtractionError(RelayError):
    """A single property payload could not be flattened.

    Always recovered by the normalizer; never reaches a caller.
    """

    kind = "extraction_error"


class InternalError(RelayError):
    """Unexpected failure inside the relay."""

    kind = "internal_error"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass
