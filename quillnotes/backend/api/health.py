"""
Health Check Endpoints.

Provides liveness, readiness, and detailed health checks.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database reachable)
- /health/detailed: Component-by-component status (for debugging)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from quillnotes.backend.core.logging import get_logger
from quillnotes.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database() -> dict[str, Any]:
    """
    Check database connectivity.

    Returns:
        Dict with status, latency, and optional error message
    """
    from quillnotes.backend.core.database import get_session_factory

    try:
        start = utc_now()
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))

        latency_ms = int((utc_now() - start).total_seconds() * 1000)

        return {
            "status": "healthy",
            "latency_ms": latency_ms,
        }

    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {
            "status": "unhealthy",
            "error": str(e),
        }


def check_ai() -> dict[str, Any]:
    """
    Report the completion endpoint's circuit breaker state.

    An open breaker degrades AI features only, so it never fails readiness.
    """
    from quillnotes.backend.core.config import get_app_config
    from quillnotes.backend.core.resilience import breaker_state
    from quillnotes.backend.services import ai

    if not get_app_config().features.ai_enabled:
        return {"status": "disabled"}
    if ai._ai_service is None:
        return {"status": "not_initialized"}

    state = breaker_state(ai._ai_service.completion.breaker)
    return {
        "status": "degraded" if state == "open" else "healthy",
        "circuit_breaker": state,
    }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running.
    No dependency checks - this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Returns 200 if ready to serve traffic, 503 if the database is unhealthy.
    """
    from quillnotes.backend.core.config import get_app_config
    timeout = get_app_config().observability.health_checks.ready_timeout_seconds

    db_result: dict[str, Any] = {"status": "error", "error": "check did not run"}

    try:
        async with asyncio.timeout(timeout):
            db_result = await check_database()
    except TimeoutError:
        logger.warning("Database health check timed out", extra={"timeout": timeout})
        db_result = {"status": "unhealthy", "error": "timeout"}

    checks = {
        "database": db_result,
        "ai": check_ai(),
    }

    if db_result.get("status") != "healthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check() -> dict[str, Any]:
    """
    Detailed health check.

    Returns dependency checks, application info and pool metrics.
    """
    from quillnotes.backend.core.config import get_app_config

    checks = {
        "database": await check_database(),
        "ai": check_ai(),
    }

    app_settings = get_app_config().application
    app_info = {
        "name": app_settings.name,
        "env": app_settings.environment,
        "debug": app_settings.debug,
        "version": app_settings.version,
    }

    statuses = [check.get("status") for check in checks.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
    elif "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return {
        "status": overall_status,
        "application": app_info,
        "checks": checks,
        "pools": _get_pool_status(),
        "timestamp": utc_now().isoformat(),
    }


def _get_pool_status() -> dict[str, Any]:
    """Collect current pool and semaphore metrics for health reporting."""
    from quillnotes.backend.core.concurrency import (
        _io_pool, _semaphores, _semaphore_capacities,
    )

    pools: dict[str, Any] = {}

    if _io_pool is not None:
        pools["thread_pool"] = {
            "max_workers": _io_pool._max_workers,
        }

    if _semaphores:
        pools["semaphores"] = {
            name: {
                "capacity": _semaphore_capacities.get(name, "unknown"),
                "available": sem._value,
            }
            for name, sem in _semaphores.items()
        }

    return pools
