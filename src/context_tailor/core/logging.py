"""Centralized logfire configuration for the tailoring pipeline.

Configuration happens at most once per process, so library entry points
(the orchestrator, scripts, tests) can all call ``configure_logging`` freely.

Usage:
    from context_tailor.core.logging import configure_logging
    configure_logging()

    import logfire
    logfire.info("Tailoring started", project_id=project_id)
"""

import sys
import threading

import logfire

_configured = False
_config_lock = threading.Lock()


def configure_logging(enable_console: bool = False) -> None:
    """Configure logfire if it has not been configured yet.

    Args:
        enable_console: Whether to emit log records to the console. Defaults to False.

    Thread-safe through double-checked locking.
    """
    global _configured

    if _configured:
        return

    with _config_lock:
        if not _configured:
            try:
                if enable_console:
                    logfire.configure(
                        send_to_logfire="if-token-present",
                        console=logfire.ConsoleOptions(),
                        min_level="debug",
                    )
                else:
                    logfire.configure(
                        send_to_logfire="if-token-present", console=False, min_level="debug"
                    )
                _configured = True
            except Exception as e:
                # logfire is not usable yet, so report on stderr and carry on unconfigured
                print(f"Failed to configure logfire: {e}", file=sys.stderr)


def is_configured() -> bool:
    """Return True once logfire has been configured."""
    return _configured
