# =============================================================================
# core/errors.py  —  Error Taxonomy for Every Gateway Call
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the small, closed set of failures a tool call can end with.
#   Every gateway in core/ raises one of these — never a raw httpx or
#   Azure SDK exception — so the tools/ layer can turn any failure into a
#   structured MCP error with a single except clause.
#
# THE KINDS:
#   - InvalidArgument   → the caller passed something unusable
#                         (empty document, unparseable ISO-8601 duration)
#   - NotFound          → the addressed blob / workspace / account is missing
#   - UpstreamError     → the backend answered with a failure (or the
#                         transport broke); carries status + body
#   - MalformedResponse → 2xx, but the payload is not the shape we expect
#   - Cancelled         → the caller aborted the call while it was in flight
#
# NOTE ON Cancelled:
#   It subclasses asyncio.CancelledError, NOT GatewayError.  Cancellation has
#   to keep unwinding the task like any other asyncio cancellation; it only
#   carries a friendlier message and the same `kind` attribute.
# =============================================================================

import asyncio
from contextlib import contextmanager

from azure.core.exceptions import (
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)


class GatewayError(Exception):
    """Base class for every structured failure of a tool call."""

    kind = "GatewayError"

    def describe(self) -> str:
        """Render as '<Kind>: <message>' for the tool-call boundary."""
        return f"{self.kind}: {self}"


class InvalidArgument(GatewayError):
    kind = "InvalidArgument"


class NotFound(GatewayError):
    kind = "NotFound"


class UpstreamError(GatewayError):
    """The backend was reached (or tried) and reported a failure."""

    kind = "UpstreamError"

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return base
        detail = f" (status {self.status})"
        if self.body:
            detail = f" (status {self.status}: {self.body[:500]})"
        return base + detail


class MalformedResponse(GatewayError):
    kind = "MalformedResponse"


class Cancelled(asyncio.CancelledError):
    kind = "Cancelled"


class ConfigError(Exception):
    """Raised at startup when required configuration is missing or invalid."""


@contextmanager
def azure_errors(operation: str):
    """Translate Azure SDK exceptions raised inside the block.

    ResourceNotFoundError must be checked before HttpResponseError because
    it is a subclass of it.
    """
    try:
        yield
    except ResourceNotFoundError as exc:
        raise NotFound(f"{operation}: {exc.message or exc}") from exc
    except HttpResponseError as exc:
        raise UpstreamError(
            f"{operation} failed",
            status=exc.status_code,
            body=exc.message or "",
        ) from exc
    except (ServiceRequestError, ServiceResponseError) as exc:
        raise UpstreamError(f"{operation}: transport failure: {exc}") from exc
    except asyncio.CancelledError as exc:
        if isinstance(exc, Cancelled):
            raise
        raise Cancelled(f"{operation} was cancelled") from exc
