# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_registry

import logging
import os
import sys
from typing import Any

from loguru import logger
from opentelemetry import trace

__all__ = ["logger", "configure_logging"]

_PACKAGE_PREFIX = "coreason_registry."


class InterceptHandler(logging.Handler):
    """
    Redirects standard logging messages to Loguru.
    Ensures the hosting engine's standard logging ends up in the same sinks.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno  # type: ignore[assignment]

        # Find caller from where originated the logged message
        frame = logging.currentframe()
        depth = 2
        while frame and (frame.f_code.co_filename == logging.__file__ or frame.f_code.co_filename == __file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(component=record.name).log(
            level, record.getMessage()
        )


def record_patcher(record: dict[str, Any]) -> None:
    """
    Loguru patcher adding registry context to every record.

    - `component`: the registry module that logged (e.g. "clients", "validator"),
      or the standard logger name for intercepted records.
    - `trace_id` / `span_id`: the current OpenTelemetry span, when one is active.
    """
    extra = record["extra"]
    if "component" not in extra:
        name = record["name"] or ""
        extra["component"] = name.removeprefix(_PACKAGE_PREFIX)

    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        extra["trace_id"] = format(ctx.trace_id, "032x")
        extra["span_id"] = format(ctx.span_id, "016x")


def _text_format(record: dict[str, Any]) -> str:
    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
    )
    if "trace_id" in record["extra"]:
        fmt += " | trace={extra[trace_id]}"
    return fmt + " - <level>{message}</level>\n{exception}"


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configures the logger. Call again to apply changed settings.

    Args:
        level: Log level. Defaults to COREASON_LOG_LEVEL, then INFO. Unknown levels fall back to INFO.
        json_output: Serialized JSON on stdout when True, text on stderr otherwise.
            Defaults to COREASON_LOG_JSON=true.

    Nothing is written to disk.
    """
    log_level = (level or os.getenv("COREASON_LOG_LEVEL", "INFO")).upper()
    if json_output is None:
        json_output = os.getenv("COREASON_LOG_JSON", "false").lower() == "true"

    try:
        logger.level(log_level)
    except ValueError:
        log_level = "INFO"

    # Drops every existing sink and installs the patcher in one go
    logger.configure(handlers=[], patcher=record_patcher)  # type: ignore[arg-type]

    if json_output:
        logger.add(sys.stdout, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, level=log_level, format=_text_format)  # type: ignore[arg-type]

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger().setLevel(logging.getLevelNamesMapping().get(log_level, logging.INFO))


# Initialize on import
configure_logging()
