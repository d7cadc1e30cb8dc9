"""Structured logging setup and request-scoped log context."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from microfarm.config import LogFormat, Settings, get_settings

REQUEST_ID_HEADER = "x-request-id"
_QUIET_PATHS = ("/health",)

_configured = False


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Configure stdlib + structlog once per process.

	Service modules call ``structlog.get_logger`` at import time; with
	``cache_logger_on_first_use`` they pick this configuration up on their
	first log call, so this must run before any request is served.
	"""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		structlog.processors.StackInfoRenderer(),
	]
	if settings.log_format == LogFormat.json:
		logging.basicConfig(level=log_level, format="%(message)s")
		processors.extend([structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()])
	else:
		logging.basicConfig(level=log_level)
		processors.append(structlog.dev.ConsoleRenderer())

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request id / method / path to the log context and time each request.

	Everything logged while the request is handled (order scheduling, task
	completion, yield updates) carries the same ``request_id``.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(
			request_id=request_id,
			method=request.method,
			path=request.url.path,
		)

		logger = structlog.get_logger("microfarm.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				duration_ms=_elapsed_ms(start),
				error=str(exc),
			)
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		log = logger.debug if request.url.path.startswith(_QUIET_PATHS) else logger.info
		log(
			"http_request",
			status_code=response.status_code,
			duration_ms=_elapsed_ms(start),
		)
		return response


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)
