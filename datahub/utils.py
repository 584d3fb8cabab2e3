import json
import logging
import sys
from typing import Any, Optional

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _normalize(value: Any) -> Any:
    # non-string dict keys become "<type>:<repr>" so mixed key types still sort
    if isinstance(value, dict):
        return {
            (k if isinstance(k, str) else f"{type(k).__name__}:{k!r}"): _normalize(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def stable_key(params: Any = None) -> str:
    """Deterministic cache key: sorted-key compact JSON, "default" for no params."""
    if params is None:
        return "default"
    return json.dumps(_normalize(params), sort_keys=True, separators=(",", ":"), default=repr)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure process-wide logging from settings (LOG_LEVEL)."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # requests is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
