import logging
import json
from datetime import datetime, timezone

logger = logging.getLogger("siteaudit")
logger.setLevel(logging.INFO)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_event(action: str, message: str, extra: dict | None = None) -> None:
    payload = {"action": action, "message": message}
    if extra:
        payload.update(extra)
    logger.info(json.dumps(payload, default=str))


def log_failure(error_code: str, context: dict | None = None) -> dict:
    """
    Single entry point for failure logging.
    Returns a minimal payload you can also persist into Event.payload.
    """
    payload = {
        "error_code": error_code,
        "timestamp": _now(),
    }
    if context:
        payload["context"] = context

    logger.error(json.dumps(payload, default=str))
    return payload


def log_report(project_id: str, images_total: int, images_failed: int) -> dict:
    payload = {
        "project_id": project_id,
        "images_total": images_total,
        "images_failed": images_failed,
        "timestamp": _now(),
    }
    logger.info(json.dumps({"action": "GENERATE_REPORT", **payload}, default=str))
    return payload
