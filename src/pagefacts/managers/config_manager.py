# src/pagefacts/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from pagefacts.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


def _cast_like(value: Any, current: Any, key_path: str) -> Any:
    """Converts `value` to the type of the setting it replaces; keeps it unchanged when that fails."""
    if current is None or isinstance(value, type(current)):
        return value
    if isinstance(current, bool):
        return str(value).strip().lower() in _TRUTHY
    try:
        return type(current)(value)
    except (ValueError, TypeError):
        logger.warning("Setting '%s' expects %s; keeping %r as given.", key_path, type(current).__name__, value)
        return value


class ConfigManager:
    """
    Process-wide access to the engine settings (thresholds, parser options,
    logging levels) bundled in settings.json.

    Values can be changed in memory for the current process, e.g. to lower
    a threshold for one run; reset() goes back to the file.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = {}
            cls._instance.reset()
        return cls._instance

    def get_all(self) -> Dict[str, Any]:
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Looks up a dotted path such as 'optimizer.chunk_size'.
        Missing keys and explicit nulls both yield `default`.
        """
        node: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(node, dict):
                return default
            node = node.get(key)
        return default if node is None else node

    def set_nested(self, key_path: str, value: Any) -> bool:
        """Sets a dotted path in memory, creating sections on the way. Returns False when a parent is not a section."""
        *parents, leaf = key_path.split('.')
        section = self._config
        for key in parents:
            section = section.setdefault(key, {})
            if not isinstance(section, dict):
                logger.error("Cannot set '%s': '%s' is not a settings section.", key_path, key)
                return False

        section[leaf] = _cast_like(value, section.get(leaf), key_path)
        logger.info("Setting changed: %s = %r", key_path, section[leaf])
        return True

    def reset(self) -> None:
        """Reloads settings.json, dropping in-memory changes. A missing or broken file gives an empty config."""
        path = PathUtils.get_settings_file()
        if not path.exists():
            logger.warning("No settings file at %s; built-in defaults apply.", path)
            self._config = {}
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not read settings from %s: %s", path, e, exc_info=True)
            self._config = {}
            return
        logger.debug("Settings loaded from %s", path)


config_manager = ConfigManager()
