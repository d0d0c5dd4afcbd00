"""Domain-specific exception hierarchy for the tailoring pipeline."""

from __future__ import annotations

from typing import Any


class ContextTailorError(Exception):
    """Base exception for all expected pipeline errors."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Serialise the error into a structured payload."""

        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidTailorRequestError(ContextTailorError):
    """Raised when a tailoring request is rejected before any stage runs."""

    def __init__(self, reason: str, **details: Any) -> None:
        super().__init__(
            message=f"Invalid tailoring request: {reason}",
            error_code="INVALID_TAILOR_REQUEST",
            status_code=400,
            details=details,
        )


class ExternalServiceError(ContextTailorError):
    """Raised when an external collaborator (index, model, search API) fails."""

    def __init__(
        self,
        *,
        service: str,
        message: str,
        original_error: Exception | None = None,
        status_code: int = 503,
    ) -> None:
        details: dict[str, Any] = {"service": service}
        if original_error:
            details["original_error"] = str(original_error)
        super().__init__(
            message=f"{service} error: {message}",
            error_code="EXTERNAL_SERVICE_ERROR",
            status_code=status_code,
            details=details,
        )
        self.service = service


class ProviderNotConfiguredError(ContextTailorError):
    """Raised when a configured provider is missing its credentials."""

    def __init__(self, provider: str, setting: str) -> None:
        super().__init__(
            message=f"{provider} requires {setting} to be set",
            error_code="PROVIDER_NOT_CONFIGURED",
            status_code=503,
            details={"provider": provider, "setting": setting},
        )


class WebSearchUnavailableError(ContextTailorError):
    """Raised when every web search provider is unavailable or failed."""

    def __init__(self, query: str, attempted: list[str], errors: dict[str, str]) -> None:
        super().__init__(
            message=f"No web search provider could answer '{query}'",
            error_code="WEB_SEARCH_UNAVAILABLE",
            status_code=503,
            details={"query": query, "attempted": attempted, "errors": errors},
        )


__all__ = [
    "ContextTailorError",
    "InvalidTailorRequestError",
    "ExternalServiceError",
    "ProviderNotConfiguredError",
    "WebSearchUnavailableError",
]
