import logging
import traceback
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from .exceptions import InternalServerError, ReconciliationError, StorageError

logger = logging.getLogger("rewardapi")


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    return {
        "method": request.method,
        "url": str(request.url),
        "client": client,
        "actor": request.headers.get("x-actor-id", "-"),
    }


def _describe(ctx: Dict[str, Any]) -> str:
    return f"{ctx['method']} {ctx['url']} from {ctx['client']} (actor={ctx['actor']})"


async def handle_base_api_exception(request, exc):
    ctx = _request_context(request)
    summary = f"[{exc.error_code}] {_describe(ctx)} -> {exc.status_code}: {exc.message}"

    if isinstance(exc, ReconciliationError):
        # 환불 실패: 수동 정산 필요
        logger.critical(f"{summary} details={exc.details}")
    elif isinstance(exc, StorageError):
        logger.error(f"{summary} details={exc.details}")
    elif exc.status_code >= 500:
        logger.error(summary)
    else:
        logger.warning(summary)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request, exc):
    ctx = _request_context(request)
    error_msg = f"[HTTPException] {_describe(ctx)} -> {exc.status_code}: {exc.detail}"

    if getattr(exc, "status_code", 500) >= 500:
        tb_str = ''.join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{error_msg}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(error_msg)

    if isinstance(exc.detail, dict) and "error" in exc.detail:  # type: ignore[truthy-bool]
        content = exc.detail  # type: ignore[assignment]
    else:
        code = "NOT_FOUND_001" if exc.status_code == 404 else "HTTP_ERROR"
        content = {
            "success": False,
            "error": {
                "code": code,
                "message": str(exc.detail),
                "details": {},
            },
        }
    return JSONResponse(status_code=exc.status_code, content=content)


async def handle_validation_error(request, exc):
    """요청 본문/쿼리 검증 실패 - 서비스 호출 전에 거절"""
    ctx = _request_context(request)
    errors = exc.errors()
    logger.warning(f"[VALIDATION_001] {_describe(ctx)} -> 422: {errors}")
    content = {
        "success": False,
        "error": {
            "code": "VALIDATION_001",
            "message": "Validation failed",
            "details": {"errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
                for err in errors
            ]},
        },
    }
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request, exc):
    ctx = _request_context(request)

    tb_str = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(ctx)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]
