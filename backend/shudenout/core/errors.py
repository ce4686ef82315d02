"""Error taxonomy shared by the guardrail layer, the search pipeline and the routes."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    configuration_error = "configuration_error"
    safe_mode = "safe_mode"
    upstream_timeout = "upstream_timeout"
    rate_limited = "rate_limited"
    server_error = "server_error"
    param_invalid = "param_invalid"
    no_results = "no_results"
    parse_error = "parse_error"
    breaker_open = "breaker_open"
    critical = "critical"


class GuardrailError(Exception):
    """Failure raised inside the guardrail layer; never escapes Guardrail.fetch."""

    kind: ErrorKind = ErrorKind.server_error
    code: int = 500

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class UpstreamTimeout(GuardrailError):
    kind = ErrorKind.upstream_timeout
    code = 408


class BreakerOpenError(GuardrailError):
    kind = ErrorKind.breaker_open
    code = 503

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Circuit breaker [{name}] is OPEN. Retry after cooldown.")


class SafeModeActive(GuardrailError):
    kind = ErrorKind.safe_mode
    code = 503

    def __init__(self) -> None:
        super().__init__("Safe mode active - external API calls disabled")


def kind_for_status(status: int) -> Optional[ErrorKind]:
    """Map an upstream HTTP status to the taxonomy; None for success statuses."""
    if status == 400:
        return ErrorKind.param_invalid
    if status == 404:
        return ErrorKind.no_results
    if status == 429:
        return ErrorKind.rate_limited
    if status == 408:
        return ErrorKind.upstream_timeout
    if status >= 500:
        return ErrorKind.server_error
    return None
