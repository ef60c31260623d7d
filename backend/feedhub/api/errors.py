"""Global error handlers rendering every failure as `{message, data?, request_id}`."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from feedhub.feed.domain.exceptions import FeedError
from feedhub.obs import logging as obs_logging

logger = obs_logging.get_logger("feedhub.api.errors")


def _request_id(request: Request) -> Optional[str]:
	return getattr(request.state, "request_id", None) or obs_logging.current_request_id()


def _error_body(request: Request, message: str, data: Any = None) -> dict[str, Any]:
	payload: dict[str, Any] = {"message": message, "request_id": _request_id(request)}
	if data is not None:
		payload["data"] = jsonable_encoder(data)
	return payload


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(FeedError)
	async def feed_exc_handler(request: Request, exc: FeedError):  # type: ignore[override]
		return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message, exc.data))

	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		message = exc.detail if isinstance(exc.detail, str) else "Request failed."
		data = None if isinstance(exc.detail, str) else exc.detail
		return JSONResponse(
			status_code=exc.status_code,
			content=_error_body(request, message, data),
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		data = [
			{"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
			for error in exc.errors()
		]
		return JSONResponse(
			status_code=422,
			content=_error_body(request, "Validation failed, entered data is incorrect.", data),
		)

	@app.exception_handler(Exception)
	async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
		logger.error("unhandled_error", exc_info=exc, extra={"path": request.url.path})
		return JSONResponse(status_code=500, content=_error_body(request, "Internal server error."))
