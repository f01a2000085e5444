"""
Startup Security Validation.

Checks security invariants before the application accepts traffic.
If any check fails, the application refuses to start with a clear error.

Called during FastAPI lifespan initialization.
"""

from quillnotes.backend.core.config import get_app_config, get_settings
from quillnotes.backend.core.logging import get_logger

logger = get_logger(__name__)


class StartupSecurityError(RuntimeError):
    """Raised when a startup security check fails."""


def run_startup_checks() -> None:
    """
    Validate all security invariants at startup.

    Raises:
        StartupSecurityError: If any check fails
    """
    app_config = get_app_config()
    settings = get_settings()
    environment = app_config.application.environment

    errors: list[str] = []

    _check_secret_strength(settings, app_config.security, errors)
    _check_ai_token(settings, app_config.features, errors)
    _check_production_safety(app_config, environment == "production", errors)

    if errors:
        for error in errors:
            logger.error("Startup security check failed", extra={"check": error})
        raise StartupSecurityError(
            f"Startup blocked: {len(errors)} security check(s) failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    logger.info(
        "Startup security checks passed",
        extra={"environment": environment, "checks_run": 3},
    )


def _check_secret_strength(settings, security_config, errors: list[str]) -> None:
    """Secrets must meet the minimum lengths from security.yaml."""
    validation = security_config.secrets_validation

    jwt_min = validation.jwt_secret_min_length
    if len(settings.jwt_secret) < jwt_min:
        errors.append(f"JWT_SECRET is {len(settings.jwt_secret)} chars, minimum is {jwt_min}")

    key_min = validation.note_encryption_key_min_length
    if len(settings.note_encryption_key) < key_min:
        errors.append(
            f"NOTE_ENCRYPTION_KEY is {len(settings.note_encryption_key)} chars, "
            f"minimum is {key_min}"
        )


def _check_ai_token(settings, features, errors: list[str]) -> None:
    if features.ai_enabled and not settings.ai_api_token:
        errors.append("ai_enabled is true but AI_API_TOKEN is empty")


def _check_production_safety(app_config, is_production: bool, errors: list[str]) -> None:
    """Validate production environment safety constraints."""
    if not is_production:
        return

    app = app_config.application
    if app.debug:
        errors.append("debug is true in production environment")

    if app_config.features.api_detailed_errors:
        errors.append("api_detailed_errors is true in production environment")

    if app.docs_enabled:
        errors.append("docs_enabled is true in production environment")

    localhost_origins = [o for o in app.cors.origins if "localhost" in o]
    if localhost_origins:
        errors.append(f"CORS origins contain localhost in production: {localhost_origins}")
