"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends

from gobs.dependencies import Services, get_services

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(services: Services = Depends(get_services)) -> dict[str, object]:  # noqa: B008
    """Readiness probe: checks DB and Redis connectivity."""
    checks: dict[str, object] = {}

    try:
        await services.database.ping()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {type(exc).__name__}"

    if services.redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await services.redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {type(exc).__name__}"

    all_ok = all(v in ("ok", "disabled") for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(services: Services = Depends(get_services)) -> dict[str, str]:  # noqa: B008
    """Return API version and environment."""
    settings = services.settings
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
