"""
Resilience Infrastructure.

Circuit breaker construction and structured state-transition logging.
External calls are never retried automatically; the breaker only makes
repeated upstream failures fail fast.

Usage:
    from quillnotes.backend.core.resilience import create_circuit_breaker

    breaker = create_circuit_breaker("completion", fail_max=5, timeout_duration=60)
    result = await breaker.call_async(post_completion, payload)
"""

from datetime import timedelta
from typing import Any

import aiobreaker

from quillnotes.backend.core.logging import get_logger

logger = get_logger(__name__)


def state_name(state: Any) -> str:
    """Normalize a breaker state (enum member, state object or str) to open/closed/half-open."""
    if not isinstance(state, str):
        state = getattr(state, "state", state)
    name = getattr(state, "name", None) or str(state)
    return name.rsplit(".", 1)[-1].lower().replace("_", "-")


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Circuit breaker listener that emits structured resilience events.

        jq 'select(.resilience_event != null)' logs/system.jsonl
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        event_map = {
            "open": "circuit_breaker_opened",
            "half-open": "circuit_breaker_half_open",
            "closed": "circuit_breaker_closed",
        }
        old_str = state_name(old_state)
        new_str = state_name(new_state)
        event = event_map.get(new_str, f"circuit_breaker_{new_str}")
        log_level = "error" if new_str == "open" else "info"

        getattr(logger, log_level)(
            f"Circuit breaker {self.dependency}: {old_str} -> {new_str}",
            extra={
                "resilience_event": event,
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            f"Circuit breaker {self.dependency}: failure recorded",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
) -> aiobreaker.CircuitBreaker:
    """Create a circuit breaker with structured logging.

    Args:
        dependency: Name of the external dependency (for logging)
        fail_max: Number of failures before opening
        timeout_duration: Seconds to wait before half-open test
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        listeners=[ResilienceLogger(dependency)],
    )


def breaker_state(breaker: aiobreaker.CircuitBreaker) -> str:
    """Return the breaker's current state name (closed, open, half-open)."""
    return state_name(breaker.current_state)
