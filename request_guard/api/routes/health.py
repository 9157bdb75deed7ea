from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness probe.

    Also reports which limiter backend the app was built with, so a deploy
    that forgot ``LIMITER_DURABLE`` is visible without reading config.
    """

    limiters = getattr(request.app.state, "limiters", None)
    backend = type(limiters.default).__name__ if limiters is not None else None
    return {"status": "ok", "limiter_backend": backend}
