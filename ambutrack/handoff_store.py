import json
import os
import tempfile
import time
from typing import Any, Dict, Optional

SELECTED_HOSPITAL = "selectedHospital"
USER_DETAILS = "userDetails"
SELECTED_AMBULANCE = "selectedAmbulance"


class MissingPrerequisite(Exception):
    """A later flow started without the hand-off data an earlier flow writes."""

    def __init__(self, key: str, redirect_to: str):
        super().__init__(f"missing {key}, start again from '{redirect_to}'")
        self.key = key
        self.redirect_to = redirect_to


class HandoffStore:
    """
    Small JSON key-value file handing data from one flow to the next.
    Every write replaces the file atomically.
    """

    def __init__(self, path: str, retries: int = 30, sleep_s: float = 0.01):
        self.path = path
        self.retries = retries
        self.sleep_s = sleep_s

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def _commit(self, updates: Dict[str, Any], keep_existing: bool = True) -> None:
        # each attempt merges into the file as it is at that moment
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)

        for attempt in range(1, self.retries + 1):
            data = self._read() if keep_existing else {}
            data.update(updates)
            fd, tmp_path = tempfile.mkstemp(prefix=".handoff_", suffix=".json", dir=folder)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                return
            except PermissionError:
                # another process holds the file open (Windows); try again shortly
                if attempt == self.retries:
                    raise
                time.sleep(self.sleep_s)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        self._commit({key: value})

    def require(self, key: str, redirect_to: str) -> Any:
        value = self.get(key)
        if value is None:
            raise MissingPrerequisite(key, redirect_to)
        return value

    def clear(self) -> None:
        self._commit({}, keep_existing=False)
