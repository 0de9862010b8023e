import time
from typing import Any, Callable, Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _probe_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _probe_cache() -> None:
    # order read endpoints are served from here
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _probe_tokens() -> None:
    # without a key login answers 503 and every bearer token is rejected
    if not settings.JWT_SIGNING_KEY:
        raise RuntimeError("JWT_SIGNING_KEY is not configured")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _probe_database,
    "cache": _probe_cache,
    "tokens": _probe_tokens,
}


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: one entry per probe, 503 as soon as any probe is down."""
    services: Dict[str, Dict[str, Any]] = {}

    for name, probe in PROBES.items():
        start = time.monotonic()
        try:
            probe()
        except Exception:
            services[name] = {"status": "down"}
            logger.exception("health_check_failure", service=name)
            continue
        services[name] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }

    healthy = all(service["status"] == "up" for service in services.values())
    health = "healthy" if healthy else "unhealthy"
    logger.info("health_check_completed", status=health)

    return JsonResponse(
        {
            "status": health,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
