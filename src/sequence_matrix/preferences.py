"""Persisted user preferences."""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Typed key/value preferences with defaults and bounds."""

    def get(self, key: str, default: Any = None,
            minimum: Optional[float] = None, maximum: Optional[float] = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


def coerce_preference(value: Any, default: Any,
                      minimum: Optional[float], maximum: Optional[float]) -> Any:
    """Return `value` coerced to the type of `default`, or `default` if it can't be."""
    if default is not None and not isinstance(value, type(default)):
        try:
            value = type(default)(value)
        except (TypeError, ValueError):
            return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if minimum is not None and value < minimum:
            return default
        if maximum is not None and value > maximum:
            return default
    return value


class MemoryPreferenceStore:
    """Preferences that live only as long as the process."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None,
            minimum: Optional[float] = None, maximum: Optional[float] = None) -> Any:
        if key not in self._values:
            return default
        return coerce_preference(self._values[key], default, minimum, maximum)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonPreferenceStore(MemoryPreferenceStore):
    """Preferences stored in a JSON file, written back on every change."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = Lock()
        super().__init__(self._read())

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preference file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preference file {self.path}: not a JSON object")
            return {}
        return data

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            super().set(key, value)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(self._values, f, indent=2)
        logger.debug(f"Preference saved: {key}={value!r}")
