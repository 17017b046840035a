"""JSON Lines log of pipeline fallbacks for offline diagnosis."""
import json
import logging
import threading
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from config import FAILURE_LOG_PATH

logger = logging.getLogger(__name__)


class FailureLogger:
    """Appends one JSON record per fallback to a log file."""

    def __init__(self, log_file_path: str = FAILURE_LOG_PATH):
        """
        Args:
            log_file_path: Path of the JSON Lines file (parent dirs are created)
        """
        self.log_file_path = Path(log_file_path)
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._file = open(self.log_file_path, "a", encoding="utf-8")
        logger.info(f"FailureLogger writing to {self.log_file_path}")

    def log_failure(
        self,
        stage: str,
        query: str,
        reason: str,
        error: Optional[BaseException] = None,
        history_length: int = 0
    ) -> Dict[str, Any]:
        """
        Record one transition into the fallback path.

        Args:
            stage: Pipeline stage that failed (invoking, extracting, validating)
            query: User query being processed
            reason: Reason text embedded in the fallback message
            error: The exception that caused the fallback, if any
            history_length: Number of history turns sent with the query

        Returns:
            The record that was written
        """
        record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "stage": stage,
            "query": query,
            "history_length": history_length,
            "reason": reason,
            "error_type": type(error).__name__ if error is not None else None,
            "error_message": str(error) if error is not None else None,
            "error_details": _error_details(error),
            "traceback": (
                "".join(traceback.format_exception(type(error), error, error.__traceback__))
                if error is not None else None
            ),
        }

        try:
            line = json.dumps(record, ensure_ascii=False, default=str)
            with self._lock:
                self._file.write(line + "\n")
                self._file.flush()
        except (OSError, ValueError) as e:
            # Diagnostics must not break the request that is already failing
            logger.error(f"Failed to write failure record: {e}")

        return record

    def close(self) -> None:
        """Close the underlying file."""
        with self._lock:
            if not self._file.closed:
                self._file.close()


def _error_details(error: Optional[BaseException]) -> Optional[Dict[str, Any]]:
    """Pull the structured fields our pipeline errors carry."""
    if error is None:
        return None
    llm_error = getattr(error, "error", None)
    if llm_error is not None and hasattr(llm_error, "code"):
        return {"code": llm_error.code, **getattr(llm_error, "details", {})}
    details = {}
    for attr in ("field", "step_index", "snippet"):
        if hasattr(error, attr):
            details[attr] = getattr(error, attr)
    return details or None
