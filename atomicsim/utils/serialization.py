"""
JSON encoding for snapshots and protocol traces.
"""
from enum import Enum
from typing import Any

import orjson


def _default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(obj: Any, pretty: bool = False) -> bytes:
    """Encode ``obj`` as JSON bytes; enums become their values."""
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(obj, default=_default, option=option)


def loads(data) -> Any:
    """Decode JSON bytes or str."""
    return orjson.loads(data)
