"""Mapping of relay errors to HTTP responses."""

from fastapi.responses import JSONResponse

from notion_relay.utils.errors import (
    InternalError,
    MissingCredentialError,
    MissingParameterError,
    RelayError,
    TransportError,
    UpstreamError,
)

ERROR_STATUS_MAP: dict[type[RelayError], int] = {
    MissingCredentialError: 401,
    MissingParameterError: 400,
    TransportError: 502,
    InternalError: 500,
}


def status_for(error: RelayError) -> int:
    """HTTP status for a relay error; upstream errors keep Notion's status."""
    if isinstance(error, UpstreamError):
        return error.status
    return ERROR_STATUS_MAP.get(type(error), 500)


def error_response(error: RelayError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(error),
        content={"success": False, "error": error.to_payload()},
    )
