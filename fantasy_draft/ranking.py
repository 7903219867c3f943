# fantasy_draft/ranking.py
from typing import Mapping

import pandas as pd

RANK_SCORE = "rank_score"


def safe_float(x) -> float | None:
    if x is None:
        return None
    try:
        value = float(x)
    except (TypeError, ValueError):
        return None
    if value != value:  # NaN
        return None
    return value


def clamp_weight(x) -> float:
    """Clamp a user-entered weight into [0, 100]; junk becomes 0."""
    value = safe_float(x)
    if value is None:
        return 0.0
    return max(0.0, min(100.0, value))


def total_weight(weights: Mapping[str, float]) -> float:
    return sum(clamp_weight(w) for w in weights.values())


def is_ranking_complete(weights: Mapping[str, float]) -> bool:
    """Weights must add up to exactly 100 before a ranking is shown as applied."""
    return total_weight(weights) == 100


def numeric_values(frame: pd.DataFrame, column: str) -> pd.Series:
    """Column coerced to floats; missing or non-numeric cells become NaN."""
    if column not in frame.columns:
        return pd.Series(float("nan"), index=frame.index, dtype=float)
    return pd.to_numeric(frame[column], errors="coerce").astype(float)


def add_rank_score(frame: pd.DataFrame, weights: Mapping[str, float]) -> pd.DataFrame:
    """
    Weighted linear score: sum(value * weight / 100) over columns with weight > 0.

    Missing and non-numeric values count as 0. When every weight is 0 the frame
    is returned unchanged, without a rank_score column.
    """
    clamped = {col: clamp_weight(w) for col, w in weights.items()}
    if sum(clamped.values()) == 0:
        return frame

    score = pd.Series(0.0, index=frame.index)
    for column, weight in clamped.items():
        if weight > 0:
            score += numeric_values(frame, column).fillna(0.0) * weight / 100

    ranked = frame.copy()
    ranked[RANK_SCORE] = score.astype(object)
    return ranked
