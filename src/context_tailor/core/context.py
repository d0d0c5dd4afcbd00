"""Request scope propagation for concurrent tailoring requests."""

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any

import logfire


@dataclass
class TailorContext:
    """Caller scope for one tailoring request.

    The caller is assumed to be authorized for ``project_id`` already; the
    context only carries identity so collaborators and log records can be
    scoped to it.
    """

    user_id: str = "default"
    project_id: str | None = None
    session_id: str | None = None
    request_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def get_scope_key(self) -> str:
        """Namespace key in the form ``user:project`` or ``user``."""
        if self.project_id:
            return f"{self.user_id}:{self.project_id}"
        return self.user_id

    def __str__(self) -> str:
        if self.project_id:
            return f"TailorContext(user={self.user_id}, project={self.project_id})"
        return f"TailorContext(user={self.user_id})"


# contextvars keeps concurrent asyncio tasks isolated from each other
_current_context: ContextVar[TailorContext | None] = ContextVar("tailor_context", default=None)


def get_current_context() -> TailorContext:
    """Return the active context, or a default one outside any request."""
    context = _current_context.get()
    if context is None:
        return TailorContext()
    return context


class TailorContextManager:
    """Sync and async context manager that installs a TailorContext.

    Usage:
        async with TailorContextManager(user_id="u1", project_id="p1"):
            response = await orchestrator.tailor(request)
    """

    def __init__(
        self,
        user_id: str = "default",
        project_id: str | None = None,
        session_id: str | None = None,
        request_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.context = TailorContext(
            user_id=user_id,
            project_id=project_id,
            session_id=session_id,
            request_id=request_id,
            metadata=metadata or {},
        )
        self._token: Token[TailorContext | None] | None = None

    def __enter__(self) -> TailorContext:
        self._token = _current_context.set(self.context)
        logfire.debug("Entered tailor context", scope=self.context.get_scope_key())
        return self.context

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current_context.reset(self._token)
            self._token = None
        logfire.debug("Exited tailor context", scope=self.context.get_scope_key())

    async def __aenter__(self) -> TailorContext:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
