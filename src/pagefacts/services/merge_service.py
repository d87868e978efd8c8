# src/pagefacts/services/merge_service.py
from functools import reduce
from typing import Any, Dict, FrozenSet, Iterable

# Keys whose incoming map overwrites the existing one entry by entry (JSON-LD is last-wins per @type).
DEFAULT_REPLACE_KEYS: FrozenSet[str] = frozenset({"json_ld"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ResultMerger:
    """
    Combines partial fact records key by key:

    - list + list    -> concatenation (existing first)
    - dict + dict    -> recursive merge
    - number + number -> sum
    - anything else  -> incoming value wins

    Inputs are never mutated; every merge returns a new dict.
    """

    def __init__(self, replace_keys: FrozenSet[str] = DEFAULT_REPLACE_KEYS):
        self.replace_keys = replace_keys

    def merge(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(existing)
        for key, value in incoming.items():
            if key not in merged:
                merged[key] = value
                continue

            current = merged[key]
            if key in self.replace_keys:
                merged[key] = {**current, **value} if isinstance(current, dict) and isinstance(value, dict) else value
            elif isinstance(current, list) and isinstance(value, list):
                merged[key] = current + value
            elif isinstance(current, dict) and isinstance(value, dict):
                merged[key] = self.merge(current, value)
            elif _is_number(current) and _is_number(value):
                merged[key] = current + value
            else:
                merged[key] = value
        return merged

    def merge_all(self, parts: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        """Merges parts in their given order (never completion order)."""
        return reduce(self.merge, parts, {})
