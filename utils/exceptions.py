# DEPENDENCIES
import requests
from typing import Any
from typing import Dict
from typing import Optional

import openai


class StatuteAnalyzerError(Exception):
    """
    Base exception for all statute analysis failures : carries a context dictionary (clause index, remote call, attempt count)
    so that callers can diagnose where a job went wrong
    """
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)

        self.message = message
        self.context = dict(context or {})


    def with_context(self, **kwargs) -> "StatuteAnalyzerError":
        """
        Attach additional context in-place and return self (for chaining in raise statements)
        """
        self.context.update({key: value for key, value in kwargs.items() if value is not None})

        return self


    def to_dict(self) -> Dict[str, Any]:
        return {"error_type" : type(self).__name__,
                "message"    : self.message,
                "context"    : self.context,
               }


class ValidationError(StatuteAnalyzerError):
    """
    Bad or empty input : raised synchronously, never retried
    """
    pass


class RemoteServiceError(StatuteAnalyzerError):
    """
    Failure of a remote collaborator (embedding provider, corpus search, text generation)
    """
    def __init__(self, message: str, service: str = "unknown", attempts: int = 1, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)

        self.service  = service
        self.attempts = attempts

        self.context.setdefault("service", service)
        self.context["attempts"] = attempts


    @property
    def retryable(self) -> bool:
        return False


class TransientRemoteError(RemoteServiceError):
    """
    Timeout, rate limit or transient server error : retried with backoff
    """
    @property
    def retryable(self) -> bool:
        return True


class TerminalRemoteError(RemoteServiceError):
    """
    Bad credentials, exhausted quota or content rejection : surfaced immediately

    scope = "provider" : the remote service is unusable for every request (credentials, quota)
    scope = "item"     : only the submitted payload was rejected (content policy, bad request)
    """
    def __init__(self, message: str, service: str = "unknown", attempts: int = 1, scope: str = "item", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, service = service, attempts = attempts, context = context)

        self.scope            = scope
        self.context["scope"] = scope


class PartialFailure(StatuteAnalyzerError):
    """
    One clause / item failed : it is skipped, recorded, and the job continues
    """
    def __init__(self, message: str, index: int, operation: str, cause: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)

        self.index     = index
        self.operation = operation
        self.cause     = cause

        self.context.update({"index" : index, "operation" : operation})

        if isinstance(cause, StatuteAnalyzerError):
            for key, value in cause.context.items():
                self.context.setdefault(key, value)


class JobFailure(StatuteAnalyzerError):
    """
    A required dependency was unreachable or retries were exhausted : the whole job fails
    """
    pass


class ComparisonError(JobFailure):
    pass


class ConflictDetectionError(JobFailure):
    pass


class OperationTimeoutError(JobFailure):
    pass



# Message fragments recognised in provider error bodies
TERMINAL_PROVIDER_MARKERS = ("invalid_api_key", "incorrect api key", "insufficient_quota", "billing", "unauthorized", "permission")
TERMINAL_ITEM_MARKERS     = ("content_policy", "content policy", "invalid_request", "maximum context length")
TRANSIENT_MARKERS         = ("rate_limit", "rate limit", "timeout", "timed out", "temporarily", "overloaded", "connection")


def _status_code_of(error: Exception) -> Optional[int]:
    """
    Extract an HTTP status code from openai / requests exceptions when one is present
    """
    status = getattr(error, "status_code", None)

    if isinstance(status, int):
        return status

    response = getattr(error, "response", None)
    status   = getattr(response, "status_code", None)

    return status if isinstance(status, int) else None


def classify_remote_error(error: Exception, service: str, attempts: int = 1) -> StatuteAnalyzerError:
    """
    Map an arbitrary exception raised by a remote call onto the transient / terminal hierarchy

    Arguments:
    ----------
        error    { Exception } : Raw exception from the client library

        service     { str }    : Name of the remote call (e.g. "embeddings.create", "search_similar_clauses")

        attempts    { int }    : Number of attempts made so far

    Returns:
    --------
        { StatuteAnalyzerError } : Classified error (ValidationError and already-classified errors pass through)
    """
    if isinstance(error, RemoteServiceError):
        error.attempts            = attempts
        error.context["attempts"] = attempts

        return error

    if isinstance(error, StatuteAnalyzerError):
        return error

    message = str(error)
    lowered = message.lower()

    # openai client exceptions
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return TerminalRemoteError(message, service = service, attempts = attempts, scope = "provider")

    if isinstance(error, openai.RateLimitError):
        if ("insufficient_quota" in lowered):
            return TerminalRemoteError(message, service = service, attempts = attempts, scope = "provider")

        return TransientRemoteError(message, service = service, attempts = attempts)

    if isinstance(error, (openai.APITimeoutError, openai.APIConnectionError, openai.InternalServerError)):
        return TransientRemoteError(message, service = service, attempts = attempts)

    if isinstance(error, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return TerminalRemoteError(message, service = service, attempts = attempts, scope = "item")

    # requests exceptions
    if isinstance(error, (requests.Timeout, requests.ConnectionError)):
        return TransientRemoteError(message, service = service, attempts = attempts)

    status = _status_code_of(error)

    if status is not None:
        if (status in (401, 402, 403)):
            return TerminalRemoteError(message, service = service, attempts = attempts, scope = "provider")

        if (status == 429) or (status >= 500):
            return TransientRemoteError(message, service = service, attempts = attempts)

        if (400 <= status < 500):
            return TerminalRemoteError(message, service = service, attempts = attempts, scope = "item")

    # Fall back to message inspection
    if any(marker in lowered for marker in TERMINAL_PROVIDER_MARKERS):
        return TerminalRemoteError(message, service = service, attempts = attempts, scope = "provider")

    if any(marker in lowered for marker in TERMINAL_ITEM_MARKERS):
        return TerminalRemoteError(message, service = service, attempts = attempts, scope = "item")

    if isinstance(error, TimeoutError) or any(marker in lowered for marker in TRANSIENT_MARKERS):
        return TransientRemoteError(message, service = service, attempts = attempts)

    # Unknown failures are treated as transient
    return TransientRemoteError(message, service = service, attempts = attempts)
