"""
Audit Log - Append-only record of every dispatched function call.

One JSON object per line in AUDIT_LOG_PATH (logs/chatbot_functions.log by
default):

    {"timestamp": "...", "type": "webhook",
     "data": {"webhook": "area_control", "external_id": "area_control",
              "data": {"area": "office", "turn": "off"},
              "user_message": "turn off the office lights",
              "outcome": "success", "message": "..."}}

Writing is best-effort: a full disk or a read-only directory is logged and
otherwise ignored. An audit failure never fails the dispatch it describes.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from homebot.core.config import settings

logger = logging.getLogger("homebot.ai.audit")


class AuditLog:
    """JSON-lines audit writer."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.AUDIT_LOG_PATH)
        self._lock = Lock()

    def record(self, entry_type: str, data: Dict[str, Any]) -> bool:
        """
        Append one entry.

        Args:
            entry_type: "command" or "webhook"
            data: Entry payload (must be JSON serializable; str() fallback otherwise)

        Returns:
            True if the line was written
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": entry_type,
            "data": data,
        }

        try:
            line = json.dumps(entry, ensure_ascii=False, default=str)
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write audit entry to {self.path}: {e}")
            return False


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
audit_log = AuditLog()
