"""Module defining custom exceptions for the latest command."""

from __future__ import annotations

from typing import Any, Self

# Exit Codes
EXIT_SUCCESS = 0
EXIT_MISSING = 1
EXIT_OUTDATED = 2
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 3


class LatestError(Exception):
    """Base exception class with context propagation.

    All exceptions raised by latest should inherit from this class.
    Context is a dictionary that accumulates relevant information
    as the exception propagates up the call stack.

    Example:
        raise LatestError("An error occurred", context={"package": "foo"})

        # Or with context propagation
        try:
            ...
        except LatestError as e:
            raise e.with_context(provider="npm")
    """
    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def with_context(self, **new_context: Any) -> Self:
        """Returns the exception with updated context.

        Args:
            **new_context: Additional context to add to the exception.

        Returns:
            The same instance of the exception with merged context.
        """
        self.context.update(new_context)
        return self

    def __str__(self) -> str:
        """String representation of the exception including context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class TransientError(LatestError):
    """Errors caused by temporary conditions.

    These errors are typically due to slow or unreachable backends.
    Their outcome is never written to the response cache, so the next
    invocation asks the backend again.
    """
    pass


class UserError(LatestError):
    """Errors caused by user actions or inputs.

    These errors indicate that the user has made a mistake or provided
    invalid input, and should not be retried without correction.

    CLI should display helpful messages to guide the user.
    """
    pass


class SystemError(LatestError):
    """Errors due to system-level issues.

    These errors indicate problems with the system environment, such as
    file system errors, permission issues, or other unexpected conditions.
    """
    pass


## Provider Exceptions ##

class ProviderError(LatestError):
    """A provider could not produce a version.

    Providers raise subclasses of this from ``fetch``. They are always
    recovered as an absent version and never reach the CLI.
    """
    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        package: str | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        """Initialise ProviderError with detailed context.

        Args:
            message: Optional custom error message.
            provider: Identity of the provider that failed.
            package: The package being looked up.
            context: Additional context information.
        """
        ctx = context or {}
        if provider:
            ctx["provider"] = provider
        if package:
            ctx["package"] = package

        if message is None:
            message = f"Provider '{provider or 'unknown'}' failed"

        super().__init__(message, context=ctx)


class ProviderUnavailableError(ProviderError):
    """The provider's backend cannot be reached.

    Typically indicates:
        - Executable missing from $PATH
        - Registry rejecting the request
    """
    pass


class NetworkError(ProviderUnavailableError, TransientError):
    """A registry request failed at the transport level or with a 429/5xx."""
    pass


class ProviderTimeoutError(ProviderError, TransientError):
    """A provider call exceeded its per-call timeout."""
    def __init__(
        self,
        message: str | None = None,
        provider: str | None = None,
        package: str | None = None,
        timeout: float | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        ctx = context or {}
        if timeout is not None:
            ctx["timeout"] = timeout

        if message is None:
            message = f"Provider timed out after {timeout or 'unknown'}s"

        super().__init__(message, provider=provider, package=package, context=ctx)


class ProviderParseError(ProviderError):
    """The backend answered, but not in the shape the provider expects."""
    pass


class CommandFailedError(ProviderError):
    """A provider command returned a non-zero exit code.

    Package managers exit non-zero for unknown packages, so this counts
    as a definite absence.
    """
    def __init__(
        self,
        message: str | None = None,
        command: str | None = None,
        returncode: int | None = None,
        error: str | None = None,
        provider: str | None = None,
        package: str | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        ctx = context or {}
        if command:
            ctx["command"] = command
        if returncode is not None:
            ctx["returncode"] = returncode
        if error:
            ctx["error"] = error

        if message is None:
            message = f"Command failed with exit code {returncode if returncode is not None else 'unknown'}"

        super().__init__(message, provider=provider, package=package, context=ctx)


## User Exceptions ##

class UnknownSourceError(UserError):
    """An explicitly requested provider identity is not registered.

    This is UserError - the command fails fast before any lookup.
    """
    def __init__(
        self,
        message: str | None = None,
        source: str | None = None,
        known: list[str] | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        ctx = context or {}
        if source:
            ctx["source"] = source
        if known:
            ctx["known"] = ", ".join(known)

        if message is None:
            message = f"Unknown source: {source or 'unknown'}"

        super().__init__(message, context=ctx)


class ConfigMalformedError(UserError):
    """The configuration file could not be read or has invalid fields.

    Recovered by falling back to defaults.
    """
    def __init__(
        self,
        message: str | None = None,
        path: str | None = None,
        field: str | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        ctx = context or {}
        if path:
            ctx["path"] = path
        if field:
            ctx["field"] = field

        if message is None:
            message = "Malformed configuration"

        super().__init__(message, context=ctx)


## System Exceptions ##

class CacheError(SystemError):
    """Errors related to cache access or corruption.

    Typically indicates:
        - File system permission issues
        - Disk space exhaustion
        - Corrupted cache files
        - Read-only file system
    """
    def __init__(
        self,
        message: str | None = None,
        key: str | None = None,
        path: str | None = None,
        operation: str | None = None,
        context: dict[str, Any] | None = None
    ) -> None:
        """Initialise CacheError with detailed context.

        Args:
            message: Optional custom error message.
            key: The cache key involved in the error.
            path: The file path involved in the error.
            operation: The cache operation being performed.
            context: Additional context information.
        """
        ctx = context or {}
        if key:
            ctx["key"] = key
        if path:
            ctx["path"] = path
        if operation:
            ctx["operation"] = operation

        if message is None:
            op_str = f"{operation} " if operation else ""
            message = f"Cache {op_str}operation failed"

        super().__init__(message, context=ctx)


class CacheCorruptError(CacheError):
    """A cache record exists but cannot be decoded. Treated as a miss."""
    pass


# CLI Error Message Templates

ERROR_TEMPLATES = {
    UnknownSourceError: (
        "❌ Unknown source: {source}\n"
        "   Known sources: {known}"
    ),
    ConfigMalformedError: (
        "⚠️ Configuration problem: {message}\n"
        "   Location: {path}"
    ),
    CacheError: (
        "⚠️ Cache error: {message}\n"
        "   Location: {path}\n"
        "   Fix: Check file permissions or run again with --no-cache"
    ),
    TransientError: (
        "⚠️ Temporary failure: {message}\n"
        "   This may resolve itself - try again in a moment"
    ),
    UserError: (
        "❌ {message}"
    ),
    SystemError: (
        "⚠️ System error: {message}\n"
        "   Please check your system configuration and try again"
    ),
    LatestError: (
        "❌ {message}"
    ),
}


def format_error_message(error: LatestError) -> str:
    """Formats an error message for CLI display based on the error type.

    The most specific template in the error's class hierarchy wins.

    Args:
        error: The LatestError instance to format.

    Returns:
        A formatted string message for CLI display.
    """
    template = next(
        (ERROR_TEMPLATES[cls] for cls in type(error).__mro__ if cls in ERROR_TEMPLATES),
        ERROR_TEMPLATES[LatestError],
    )
    try:
        return template.format(**{**error.context, "message": error.message})
    except KeyError:
        return f"❌ {error.message}"
