"""FastAPI application exposing lock-protected demo endpoints."""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from distlock.app.models import ApiResponse, HealthState
from distlock.core.factory import build_protector
from distlock.core.models import ProtectResult, ResultStatus
from distlock.core.protector import LockProtector
from distlock.core.settings import LockSettings
from distlock.utils.logging import get_logger


logger = get_logger("LockAPI")

_STATUS_CODES = {
    ResultStatus.VALUE: 200,
    ResultStatus.REJECTED: 429,
    ResultStatus.DECLARED_FAILURE: 500,
    ResultStatus.TIMED_OUT: 504,
}


def to_response(result: ProtectResult) -> JSONResponse:
    """Translate a protected call's result into the API envelope."""
    if result.status is ResultStatus.VALUE:
        body = ApiResponse(ok=True, data=result.value)
    elif result.status is ResultStatus.REJECTED:
        body = ApiResponse(ok=False, code="OPERATE_FAILED", message="Operation in progress, try again later")
    elif result.status is ResultStatus.TIMED_OUT:
        body = ApiResponse(ok=False, code="SYSTEM_ERROR", message="System error: lock lease expired")
    else:
        body = ApiResponse(ok=False, code="SYSTEM_ERROR", message="System error")
    return JSONResponse(status_code=_STATUS_CODES[result.status], content=body.model_dump(mode="json"))


def create_app(
    settings: Optional[LockSettings] = None,
    protector: Optional[LockProtector] = None,
    *,
    slow_seconds: float = 3.0,
) -> FastAPI:
    settings = settings or LockSettings.from_env()
    protector = protector or build_protector(settings)
    logger.info("Using %s lock backend (default lease %d ms)", settings.backend, protector.default_lease_ms)

    # Default key: qualified name + arguments, default lease.
    @protector.protect
    async def dlock_test() -> str:
        return "cc-dd d lock test."

    # Explicit key; the caller guarantees it is unique system-wide and that the
    # work finishes inside the lease.
    @protector.protect(key="asdfasmmm", lease_ms=15_000)
    async def dlock_slow() -> str:
        logger.info("start running slow operation")
        await asyncio.sleep(slow_seconds)
        logger.info("end running slow operation")
        return "X: timeout supported d lock test."

    app = FastAPI(title="distlock demo")

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover
        await protector.close()

    @app.get("/health", response_model=HealthState)
    async def health() -> HealthState:
        return HealthState(ok=True, backend=settings.backend, abandoned_workers=protector.guard.abandoned)

    @app.get("/dlock/test")
    async def dlock_test_endpoint() -> JSONResponse:
        return to_response(await dlock_test())

    @app.get("/dlock/t")
    async def dlock_slow_endpoint() -> JSONResponse:
        return to_response(await dlock_slow())

    return app


# Default ASGI app for `uvicorn distlock.app.main:app`, configured from DISTLOCK_* env vars.
app = create_app()
