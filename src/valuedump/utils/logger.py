import json
import logging
import logging.config
import os
import time
from datetime import datetime, timezone
from functools import lru_cache
from logging import Logger
from pathlib import Path
from typing import Any, Optional, cast

from valuedump.document import DocumentEncodingError, EncodedDocument, encode_payload
from valuedump.dump import dump

_DEBUG_ENABLED = False
_DEBUG_MODULES: set[str] = set()
_CONFIGURED = False
_RUN_ID: str | None = None
_MODE: str | None = None

PROFILE_ENV_VAR = "VALUEDUMP_LOG_PROFILE"


def _merge_profile(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _merge_profile(merged[k], v)
        else:
            merged[k] = v
    return merged


def _build_dict_config(profile: dict[str, Any], *, run_id: str | None, mode: str | None) -> dict[str, Any]:
    level_name = str(profile.get("level", "INFO")).upper()

    format_cfg = profile.get("format", {}) if isinstance(profile.get("format"), dict) else {}
    use_json = bool(format_cfg.get("json", True))
    formatter_name = "json" if use_json else "standard"

    handlers_cfg = profile.get("handlers", {}) if isinstance(profile.get("handlers"), dict) else {}
    console_cfg = handlers_cfg.get("console", {}) if isinstance(handlers_cfg.get("console"), dict) else {}
    file_cfg = handlers_cfg.get("file", {}) if isinstance(handlers_cfg.get("file"), dict) else {}

    handlers: dict[str, Any] = {}
    root_handlers: list[str] = []

    if bool(console_cfg.get("enabled", True)):
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": str(console_cfg.get("level", level_name)).upper(),
            "formatter": formatter_name,
            "filters": ["context"],
            "stream": str(console_cfg.get("stream", "ext://sys.stdout")),
        }
        root_handlers.append("console")

    if bool(file_cfg.get("enabled", False)):
        path_template = str(file_cfg.get("path", "artifacts/runs/{run_id}/logs/{mode}.jsonl"))
        path = Path(path_template.format(
            run_id=run_id or "run",
            mode=mode or "default",
        ))
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": str(file_cfg.get("level", level_name)).upper(),
            "formatter": formatter_name,
            "filters": ["context"],
            "filename": str(path),
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": "valuedump.utils.logger.ContextFilter"},
        },
        "formatters": {
            "json": {
                "()": "valuedump.utils.logger.JsonFormatter",
                "raw_documents": bool(format_cfg.get("raw_documents", True)),
            },
            "standard": {
                "()": "valuedump.utils.logger.TextFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {
            "level": level_name,
            "handlers": root_handlers,
        },
    }


def init_logging(
    config_path: str | Path = "configs/logging.json",
    *,
    run_id: str | None = None,
    mode: str | None = None,
) -> None:
    global _DEBUG_ENABLED, _DEBUG_MODULES, _CONFIGURED, _RUN_ID, _MODE

    path = Path(config_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    with path.open("r", encoding="utf-8") as f:
        cfg = json.load(f)

    profiles = cfg.get("profiles", {})
    if not isinstance(profiles, dict):
        raise TypeError("logging.json 'profiles' must be a dict")

    profile_name = str(mode or os.getenv(PROFILE_ENV_VAR) or cfg.get("active_profile") or "default")
    if profile_name not in profiles:
        raise KeyError(f"logging profile not found: {profile_name}")

    base_profile = profiles.get("default", {})
    if not isinstance(base_profile, dict):
        base_profile = {}

    profile = _merge_profile(base_profile, profiles.get(profile_name, {}))

    debug_cfg = profile.get("debug", {})
    if not isinstance(debug_cfg, dict):
        debug_cfg = {}
    _DEBUG_ENABLED = bool(debug_cfg.get("enabled", False))
    _DEBUG_MODULES = {str(x) for x in debug_cfg.get("modules", [])}

    _RUN_ID = run_id
    _MODE = profile_name

    dict_cfg = _build_dict_config(profile, run_id=run_id, mode=profile_name)
    logging.config.dictConfig(dict_cfg)

    _CONFIGURED = True
    get_logger.cache_clear()
    for logger in logging.root.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.level != logging.NOTSET:
            logger.setLevel(logging.NOTSET)


class ContextFilter(logging.Filter):
    """
    Guarantees LogRecord has a `context` attribute.
    This makes dynamic LogRecord extension explicit and type-safe.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = getattr(record, "context", None)

        # If not configured yet, do not mutate records beyond ensuring the attribute exists.
        if not _CONFIGURED:
            if not hasattr(record, "context"):
                setattr(record, "context", None)
            return True

        if ctx is None:
            ctx = {}
            setattr(record, "context", ctx)
        elif not isinstance(ctx, dict):
            ctx = {"_context": dump(ctx)}
            setattr(record, "context", ctx)

        if _RUN_ID is not None and "run_id" not in ctx:
            ctx["run_id"] = _RUN_ID
        if _MODE is not None and "mode" not in ctx:
            ctx["mode"] = _MODE

        return True


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter, one object per line.

    Context fields are dump values. With ``raw_documents`` (the default)
    record/sequence/mapping fields are embedded as JSON; otherwise they are
    written as strings holding the JSON text.
    """

    def __init__(self, *, raw_documents: bool = True) -> None:
        super().__init__()
        self.raw_documents = raw_documents

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            # human-readable UTC time with millisecond precision
            "ts": dt.isoformat(timespec="milliseconds"),
            # numeric epoch milliseconds for machine joins/replay
            "ts_ms": int(record.created * 1000),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }

        context = cast(Optional[dict[str, Any]], getattr(record, "context", None))
        if isinstance(context, dict) and context:
            payload["context"] = _sanitize_context(context)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        try:
            return encode_payload(payload, raw_documents=self.raw_documents)
        except DocumentEncodingError as exc:
            fallback = {
                "ts": payload.get("ts"),
                "ts_ms": payload.get("ts_ms"),
                "level": payload.get("level"),
                "logger": payload.get("logger"),
                "event": payload.get("event"),
                "context": repr(payload.get("context")),
                "format_error": str(exc),
            }
            return json.dumps(fallback, ensure_ascii=False)


class UtcFormatter(logging.Formatter):
    converter = time.gmtime


class TextFormatter(UtcFormatter):
    """Human-readable line followed by ``key=value`` context fields."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return line
        fields = " ".join(f"{k}={_text_field(v)}" for k, v in _sanitize_context(context).items())
        return f"{line} {fields}"


def _text_field(v: Any) -> str:
    if isinstance(v, EncodedDocument):
        return v.text
    if v is None:
        return "null"
    if isinstance(v, str):
        if not v or any(c.isspace() or c in '"=' for c in v):
            return json.dumps(v, ensure_ascii=False)
        return v
    return str(v)


@lru_cache(None)
def get_logger(name: str = "valuedump") -> Logger:
    logger = logging.getLogger(name)
    if not _CONFIGURED:
        logger.setLevel(logging.NOTSET)
    return logger


def _sanitize_context(context: dict[str, Any]) -> dict[str, Any]:
    return {str(k): dump(v) for k, v in context.items()}


def _debug_module_matches(logger_name: str, module: str) -> bool:
    if logger_name == module or logger_name.startswith(module + "."):
        return True
    parts = logger_name.split(".")
    return module in parts


def log_debug(logger: Logger, msg: str, **context):
    if not _DEBUG_ENABLED:
        return
    if _DEBUG_MODULES:
        if not any(_debug_module_matches(logger.name, m) for m in _DEBUG_MODULES):
            return
    logger.debug(msg, extra={"context": _sanitize_context(context)})


def log_info(logger: Logger, msg: str, **context):
    logger.info(msg, extra={"context": _sanitize_context(context)})


def log_warn(logger: Logger, msg: str, **context):
    logger.warning(msg, extra={"context": _sanitize_context(context)})


def log_error(logger: Logger, msg: str, **context):
    logger.error(msg, extra={"context": _sanitize_context(context)})


def log_exception(logger: Logger, msg: str, **context):
    logger.exception(msg, extra={"context": _sanitize_context(context)})
