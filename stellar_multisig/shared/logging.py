"""Centralized logging configuration for the multisig coordinator.

This module provides:
- Configurable log levels through the environment
- Secret seed and password sanitization
- User-friendly messages for common Stellar failures
- Structured logging with context fields
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

_TRUTHY = ("1", "true", "yes")


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LoggingConfig:
    log_level: LogLevel = LogLevel.INFO
    log_to_file: bool = False
    log_to_stdout: bool = False
    log_dir: Path | None = None
    log_filename: str = "coordinator.log"
    sanitize_sensitive: bool = True
    include_context: bool = True

    @classmethod
    def from_environment(cls) -> "LoggingConfig":
        env_level = os.getenv("STELLAR_MULTISIG_LOG_LEVEL", "INFO").upper()
        try:
            log_level = LogLevel(env_level)
        except ValueError:
            log_level = LogLevel.INFO

        return cls(
            log_level=log_level,
            log_to_file=os.getenv("STELLAR_MULTISIG_LOG_FILE", "").lower() in _TRUTHY,
            log_to_stdout=os.getenv("STELLAR_MULTISIG_LOG_STDOUT", "").lower()
            in _TRUTHY,
        )


SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(
            r"((?:secret|seed)[_-]?(?:key)?['\"]?\s*[:=]\s*['\"]?)([^\s'\",}]+)",
            re.IGNORECASE,
        ),
        r"\1[REDACTED]",
    ),
    (
        re.compile(
            r"(password['\"]?\s*[:=]\s*['\"]?)([^\s'\"]+)",
            re.IGNORECASE,
        ),
        r"\1[REDACTED]",
    ),
    (
        re.compile(r"\bS[A-Z2-7]{55}\b"),
        "[SEED_REDACTED]",
    ),
]

ADDRESS_PATTERN = re.compile(r"\b[GM][A-Z2-7]{55}(?:[A-Z2-7]{13})?\b")


def sanitize_message(message: str, preserve_addresses: bool = True) -> str:
    if not message:
        return message

    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    if not preserve_addresses:
        sanitized = ADDRESS_PATTERN.sub("[ADDRESS_REDACTED]", sanitized)

    return sanitized


def sanitize_dict(
    data: dict[str, Any], preserve_addresses: bool = True
) -> dict[str, Any]:
    result = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(
            sensitive in key_lower
            for sensitive in ["secret", "seed", "password", "private_key"]
        ):
            result[key] = "[REDACTED]"
        elif isinstance(value, str):
            result[key] = sanitize_message(value, preserve_addresses)
        elif isinstance(value, dict):
            result[key] = sanitize_dict(value, preserve_addresses)
        elif isinstance(value, list):
            result[key] = [
                sanitize_dict(item, preserve_addresses)
                if isinstance(item, dict)
                else sanitize_message(item, preserve_addresses)
                if isinstance(item, str)
                else item
                for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ErrorMapping:
    error_pattern: str
    user_message: str
    log_level: LogLevel = LogLevel.ERROR
    suggest_action: str | None = None


ERROR_MAPPINGS: list[ErrorMapping] = [
    ErrorMapping(
        error_pattern="timeout|timed out",
        user_message="Connection timed out. Horizon may be slow or unavailable.",
        log_level=LogLevel.WARNING,
        suggest_action="Try again later or check your network connection.",
    ),
    ErrorMapping(
        error_pattern="connection refused|cannot connect|connection error",
        user_message="Unable to connect to the Horizon server.",
        log_level=LogLevel.WARNING,
        suggest_action="Check your internet connection and try again.",
    ),
    ErrorMapping(
        error_pattern="tx_bad_auth|op_bad_auth",
        user_message="The transaction does not carry enough signature weight.",
        log_level=LogLevel.WARNING,
        suggest_action="Collect more signatures before submitting.",
    ),
    ErrorMapping(
        error_pattern="tx_bad_seq",
        user_message="The transaction sequence number is out of date.",
        log_level=LogLevel.WARNING,
        suggest_action="Rebuild the transaction and collect signatures again.",
    ),
    ErrorMapping(
        error_pattern="tx_too_late|tx_too_early",
        user_message="The transaction is outside its valid time window.",
        log_level=LogLevel.WARNING,
        suggest_action="Rebuild the transaction with a fresh time bound.",
    ),
    ErrorMapping(
        error_pattern="tx_insufficient_fee",
        user_message="Transaction fee is too low.",
        log_level=LogLevel.WARNING,
        suggest_action="Increase the base fee and try again.",
    ),
    ErrorMapping(
        error_pattern="tx_insufficient_balance|op_underfunded",
        user_message="Insufficient balance for this transaction.",
        log_level=LogLevel.WARNING,
        suggest_action="Ensure the account holds enough XLM for the payment and fees.",
    ),
    ErrorMapping(
        error_pattern="identity mismatch",
        user_message="The signing device used a different account than the one selected.",
        log_level=LogLevel.WARNING,
        suggest_action="Retry with the correct device or account.",
    ),
    ErrorMapping(
        error_pattern="envelope mismatch",
        user_message="The signed data belongs to a different transaction.",
        log_level=LogLevel.ERROR,
        suggest_action="Compare fingerprints on both devices before signing.",
    ),
    ErrorMapping(
        error_pattern="invalid account configuration|lock the account",
        user_message="This signer configuration would lock the account.",
        log_level=LogLevel.WARNING,
        suggest_action="Lower the thresholds or add signer weight.",
    ),
    ErrorMapping(
        error_pattern="not found|404",
        user_message="The requested account was not found.",
        log_level=LogLevel.WARNING,
        suggest_action="Check the account id and network.",
    ),
    ErrorMapping(
        error_pattern="rate limit|too many requests|429",
        user_message="Too many requests. Please slow down.",
        log_level=LogLevel.WARNING,
        suggest_action="Wait a moment and try again.",
    ),
]


def get_user_friendly_error(error: Exception | str) -> tuple[str, str | None]:
    error_message = str(error) if isinstance(error, Exception) else error
    error_lower = error_message.lower()

    for mapping in ERROR_MAPPINGS:
        if re.search(mapping.error_pattern, error_lower):
            return mapping.user_message, mapping.suggest_action

    return "An unexpected error occurred.", None


class StructuredFormatter(logging.Formatter):
    def __init__(
        self,
        sanitize: bool = True,
        include_context: bool = True,
        preserve_addresses: bool = True,
    ):
        super().__init__()
        self.sanitize = sanitize
        self.include_context = include_context
        self.preserve_addresses = preserve_addresses

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            log_data["module"] = record.module
            log_data["function"] = record.funcName
            log_data["line"] = record.lineno

        extra_data = getattr(record, "context", None)
        if extra_data and isinstance(extra_data, dict):
            if self.sanitize:
                extra_data = sanitize_dict(extra_data, self.preserve_addresses)
            log_data["context"] = extra_data

        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            if self.sanitize:
                exc_text = sanitize_message(exc_text, self.preserve_addresses)
            log_data["exception"] = exc_text

        if self.sanitize:
            log_data["message"] = sanitize_message(
                log_data["message"], self.preserve_addresses
            )

        try:
            return json.dumps(log_data, default=str)
        except (TypeError, ValueError):
            return f"{log_data['timestamp']} - {log_data['logger']} - {log_data['level']} - {log_data['message']}"


class HumanReadableFormatter(logging.Formatter):
    def __init__(
        self,
        sanitize: bool = True,
        preserve_addresses: bool = True,
    ):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.sanitize = sanitize
        self.preserve_addresses = preserve_addresses

    def format(self, record: logging.LogRecord) -> str:
        if self.sanitize and record.msg:
            record.msg = sanitize_message(str(record.msg), self.preserve_addresses)
            if record.args and isinstance(record.args, tuple):
                record.args = tuple(
                    sanitize_message(arg, self.preserve_addresses)
                    if isinstance(arg, str)
                    else arg
                    for arg in record.args
                )

        return super().format(record)


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that attaches a ``context`` dict to every record."""

    def __init__(
        self,
        logger: logging.Logger,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(logger, context or {})

    def process(
        self,
        msg: str,
        kwargs: dict[str, Any],
    ) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        context = {**(self.extra or {}), **extra.pop("context", {})}
        if context:
            extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **kwargs: Any) -> "ContextAdapter":
        new_context = {**(self.extra or {}), **kwargs}
        return ContextAdapter(self.logger, new_context)


_logging_initialized = False


def _build_formatter(config: LoggingConfig, log_format: str) -> logging.Formatter:
    if log_format == "json":
        return StructuredFormatter(
            sanitize=config.sanitize_sensitive,
            include_context=config.include_context,
        )
    return HumanReadableFormatter(sanitize=config.sanitize_sensitive)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the package logger.

    Only the ``stellar_multisig`` logger is touched so that host
    applications keep control of the root logger.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    if config is None:
        config = LoggingConfig.from_environment()

    package_logger = logging.getLogger("stellar_multisig")
    package_logger.setLevel(getattr(logging, config.log_level.value))

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    log_format = (
        "json"
        if os.getenv("STELLAR_MULTISIG_LOG_FORMAT", "human").lower() == "json"
        else "human"
    )

    handlers: list[logging.Handler] = []

    if config.log_to_file:
        if config.log_dir is None:
            config.log_dir = Path.home() / ".stellar-multisig"
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / config.log_filename

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(_build_formatter(config, log_format))
        handlers.append(file_handler)

    if config.log_to_stdout:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(_build_formatter(config, log_format))
        handlers.append(stdout_handler)

    for handler in handlers:
        package_logger.addHandler(handler)

    _logging_initialized = True


def get_logger(
    name: str,
    context: dict[str, Any] | None = None,
) -> ContextAdapter:
    if not _logging_initialized:
        setup_logging()

    logger = logging.getLogger(name)
    return ContextAdapter(logger, context)


def log_with_context(
    logger: logging.Logger | ContextAdapter,
    level: int,
    message: str,
    **context: Any,
) -> None:
    if isinstance(logger, ContextAdapter):
        adapter = logger.with_context(**context)
        adapter.log(level, message)
    else:
        logger.log(level, message, extra={"context": context})


def format_error_for_user(error: Exception | str) -> str:
    user_message, suggestion = get_user_friendly_error(error)
    if suggestion:
        return f"{user_message} {suggestion}"
    return user_message


__all__ = [
    "LogLevel",
    "LoggingConfig",
    "ContextAdapter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "sanitize_message",
    "sanitize_dict",
    "get_user_friendly_error",
    "setup_logging",
    "get_logger",
    "log_with_context",
    "format_error_for_user",
]
