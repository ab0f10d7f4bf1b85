"""
Session Store
=============

Last-submission persistence: one JSON file holding the most recent
request, its results and when they were produced. Failures are logged
and reported through the return value; callers carry on without the
saved data.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

KEY_FORM_DATA = "lastFormulation"
KEY_RESULTS = "lastResults"
KEY_RESULTS_TIMESTAMP = "resultsTimestamp"


class SessionStore:

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Session file {self.path} does not contain an object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def _update(self, values: Dict[str, Any]) -> bool:
        try:
            data = self._read()
        except (OSError, ValueError) as e:
            logger.error("Discarding unreadable session file %s: %s", self.path, e)
            data = {}
        data.update(values)
        try:
            self._write(data)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save session data: %s", e)
            return False
        return True

    def _get(self, key: str) -> Optional[Any]:
        try:
            return self._read().get(key)
        except (OSError, ValueError) as e:
            logger.error("Failed to load session data: %s", e)
            return None

    def save_form_data(self, form_data: Dict[str, Any]) -> bool:
        return self._update({KEY_FORM_DATA: form_data})

    def load_form_data(self) -> Optional[Dict[str, Any]]:
        data = self._get(KEY_FORM_DATA)
        if data is not None:
            logger.debug("Loaded saved form data")
        return data

    def save_results(self, results: List[Dict[str, Any]]) -> bool:
        return self._update({
            KEY_RESULTS: results,
            KEY_RESULTS_TIMESTAMP: datetime.now(timezone.utc).isoformat(),
        })

    def load_results(self) -> Optional[List[Dict[str, Any]]]:
        return self._get(KEY_RESULTS)

    def results_timestamp(self) -> Optional[str]:
        return self._get(KEY_RESULTS_TIMESTAMP)

    def clear(self) -> bool:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to clear session file: %s", e)
            return False
        return True
