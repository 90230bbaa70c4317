import logging
import json
import os
from datetime import datetime, timezone


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        for attr in ("path", "collection", "component"):
            if hasattr(record, attr):
                base[attr] = getattr(record, attr)
        env = os.getenv("ENVIRONMENT")
        if env:
            base["env"] = env
        return json.dumps(base, ensure_ascii=False, default=str)


def _configure_root():
    if getattr(_configure_root, "_configured", False):
        return
    level = os.getenv("DOCSTORE_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO")).upper()
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"
    h = logging.StreamHandler()
    if json_mode:
        h.setFormatter(_JsonFormatter())
    else:
        h.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
    # Only the package logger is configured; host root handlers do not see these records.
    pkg = logging.getLogger("docstore")
    pkg.handlers.clear()
    pkg.addHandler(h)
    pkg.setLevel(getattr(logging, level, logging.INFO))
    pkg.propagate = False
    _configure_root._configured = True


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(f"docstore.{name}")


__all__ = ["get_logger"]
