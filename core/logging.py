"""structlog setup for the ledger API.

RequestLogMiddleware binds request_id, method, path and client into contextvars for the
lifetime of a request, so every ledger log line emitted by a view carries them.
"""
import logging
import sys

import structlog

SERVICE_NAME = "medalbank"


def add_service(logger, method_name, event_dict):
	event_dict.setdefault("service", SERVICE_NAME)
	return event_dict


def configure_logging(debug: bool = False, level: str | None = None) -> None:
	if level:
		log_level = logging.getLevelName(level.upper())
	else:
		log_level = logging.DEBUG if debug else logging.INFO
	logging.basicConfig(
		format="%(message)s",
		stream=sys.stdout,
		level=log_level,
	)
	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			add_service,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.StackInfoRenderer(),
			structlog.processors.format_exc_info,
			structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		context_class=dict,
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
	return structlog.get_logger(name)


def bind_request_context(request_id: str, **fields) -> None:
	"""
	Replace whatever a previous request left bound on this thread
	"""
	structlog.contextvars.clear_contextvars()
	structlog.contextvars.bind_contextvars(request_id=request_id, **fields)


def clear_request_context() -> None:
	structlog.contextvars.clear_contextvars()
