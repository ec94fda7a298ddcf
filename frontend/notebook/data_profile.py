"""
CSV 数据概览
列 / 前 5 行 / 每列统计 / 数值列直方图，以及各个 AI 请求需要的数据上下文
"""
import math
from io import StringIO
from typing import Any, Optional

import numpy as np
import pandas as pd

PREVIEW_ROWS = 5
MAX_BINS = 10


def _json_value(value: Any):
    """numpy / pandas 标量转成可以 JSON 序列化的 str / float / None"""
    if value is None:
        return None
    if isinstance(value, (np.generic,)):
        value = value.item()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


def read_csv(content: str) -> pd.DataFrame:
    return pd.read_csv(StringIO(content))


def _histogram(series: pd.Series) -> list[dict]:
    clean = series.dropna()
    if clean.empty:
        return []
    bins = max(1, min(MAX_BINS, clean.nunique()))
    counts, edges = np.histogram(clean.astype(float), bins=bins)
    return [
        {"bin": f"{edges[i]:.2f}-{edges[i + 1]:.2f}", "count": int(counts[i])}
        for i in range(len(counts))
    ]


def column_stats(series: pd.Series) -> dict:
    count = int(series.count())
    missing = int(series.isna().sum())
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        empty = series.isna().all()
        return {
            "type": "numeric",
            "count": count,
            "missing": missing,
            "mean": None if empty else float(series.mean()),
            "min": None if empty else float(series.min()),
            "max": None if empty else float(series.max()),
        }
    return {
        "type": "categorical",
        "count": count,
        "missing": missing,
        "unique": int(series.nunique()),
    }


def profile_dataframe(df: pd.DataFrame) -> dict:
    stats = {}
    distributions = {}
    for col in df.columns:
        stats[str(col)] = column_stats(df[col])
        if stats[str(col)]["type"] == "numeric":
            distributions[str(col)] = _histogram(df[col])
    return {
        "columns": [str(c) for c in df.columns],
        "rows": [[_json_value(v) for v in row] for row in df.head(PREVIEW_ROWS).itertuples(index=False)],
        "stats": stats,
        "distributions": distributions,
        "rowCount": int(len(df)),
    }


def profile_csv(content: str) -> dict:
    """
    Returns:
        {columns, rows (前 5 行), stats, distributions, rowCount}
    """
    return profile_dataframe(read_csv(content))


# ---- AI 请求的 payload ----

def _data_columns(profile: dict) -> list[dict]:
    columns = []
    for i, name in enumerate(profile["columns"]):
        columns.append({
            "name": name,
            "type": profile["stats"][name]["type"],
            "sampleValues": [row[i] for row in profile["rows"][:3]],
        })
    return columns


def build_analyze_data_request(profile: dict) -> dict:
    return {
        "columns": _data_columns(profile),
        "stats": profile["stats"],
        "sampleRows": profile["rows"],
    }


def build_clean_data_request(profile: dict, user_feedback: Optional[str] = None) -> dict:
    payload = {
        "columns": _data_columns(profile),
        "sampleRows": profile["rows"],
        "stats": profile["stats"],
    }
    if user_feedback:
        payload["userFeedback"] = user_feedback
    return payload


def build_data_context(profile: dict, file_name: Optional[str] = None) -> dict:
    """model-chat 用的 dataContext"""
    return {
        "columns": _data_columns(profile),
        "sampleData": [dict(zip(profile["columns"], row)) for row in profile["rows"]],
        "rowCount": profile.get("rowCount"),
        "csvFileName": file_name,
    }
