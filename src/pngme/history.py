import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_HISTORY_PATH = Path.home() / ".pngme_history.jsonl"


def history_path() -> Path:
    """PNGME_HISTORY_PATH wins over the default, checked on every call."""
    override = os.getenv("PNGME_HISTORY_PATH")
    return Path(override) if override else DEFAULT_HISTORY_PATH


def log_event(action: str, payload: Dict[str, Any], path: Optional[Path] = None) -> None:
    """
    Append one JSON line per command run: action, UTC timestamp, then the
    command's own fields (file, chunk type, status...).
    """
    record = {
        "action": action,
        "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        **payload,
    }
    target = path or history_path()
    try:
        with target.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
    except OSError:
        # A read-only home must not make encode/decode fail.
        pass


def read_events(limit: Optional[int] = None, path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Most recent events last; lines that are not JSON objects are skipped."""
    target = path or history_path()
    if not target.exists():
        return []
    events: List[Dict[str, Any]] = []
    for line in target.read_text(encoding="utf-8").splitlines():
        try:
            event = json.loads(line)
        except ValueError:
            continue
        if isinstance(event, dict):
            events.append(event)
    if limit is not None:
        events = events[-limit:] if limit > 0 else []
    return events


def format_event(event: Dict[str, Any]) -> str:
    parts = [str(event.get("time", "-")), str(event.get("action", "?"))]
    for key in ("file", "chunk_type", "output"):
        if event.get(key):
            parts.append(f"{key}={event[key]}")
    parts.append(str(event.get("status", "")))
    return "  ".join(p for p in parts if p)
