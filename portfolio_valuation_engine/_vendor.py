"""Small helpers for JSON-safe serialization/coercion."""

from __future__ import annotations

import enum
import math
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd


def make_json_safe(obj: Any) -> Any:
    """Recursively convert values into JSON-serializable forms."""
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if isinstance(key, (pd.Timestamp, datetime, date)):
                safe_key = key.strftime("%Y-%m-%d")
            elif isinstance(key, (int, float, str, bool, type(None))):
                safe_key = key
            else:
                safe_key = str(key)
            out[safe_key] = make_json_safe(value)
        return out

    if isinstance(obj, (list, tuple)):
        return [make_json_safe(item) for item in obj]

    if isinstance(obj, pd.DataFrame):
        return make_json_safe(obj.to_dict("index"))

    if isinstance(obj, pd.Series):
        return {make_json_safe_key(k): make_json_safe(v) for k, v in obj.to_dict().items()}

    if isinstance(obj, np.ndarray):
        return [make_json_safe(item) for item in obj.tolist()]

    if isinstance(obj, np.integer):
        return int(obj)

    if isinstance(obj, np.floating):
        return _finite_or_none(float(obj))

    if isinstance(obj, np.bool_):
        return bool(obj)

    if isinstance(obj, enum.Enum):
        return obj.value

    if isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.strftime("%Y-%m-%d")

    if isinstance(obj, float):
        return _finite_or_none(obj)

    if isinstance(obj, (int, str, bool, type(None))):
        return obj

    return str(obj)


def make_json_safe_key(key: Any) -> Any:
    if isinstance(key, (pd.Timestamp, datetime, date)):
        return key.strftime("%Y-%m-%d")
    if isinstance(key, (int, float, str, bool, type(None))):
        return key
    return str(key)


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def _to_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None
