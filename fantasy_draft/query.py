# fantasy_draft/query.py
"""
Player table pipeline: rank -> filter -> sort -> paginate -> choose columns.

`run_query` is a pure function of the player rows and the user's controls.
`TableState` holds those controls between calls and applies the page-reset
rules: changing the position filter, team filter or sort sends the table back
to page 1; editing advanced filters or ranking weights does not.
"""
import functools
import locale
import math
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field, field_validator

from fantasy_draft.config import (
    DEFAULT_VISIBLE_COLUMNS,
    KEY_COLUMNS,
    MAX_PREDICATES,
    NON_NUMERIC_COLUMNS,
    PAGE_SIZE,
)
from fantasy_draft.export import format_column_header
from fantasy_draft.ranking import (
    RANK_SCORE,
    add_rank_score,
    clamp_weight,
    is_ranking_complete,
    numeric_values,
    safe_float,
    total_weight,
)

ALL = "ALL"


class Predicate(BaseModel):
    column: str
    operator: Literal["gte", "lte"] = "gte"
    value: Any = ""  # As typed by the user; may be empty or junk

    def threshold(self) -> Optional[float]:
        """Numeric threshold, or None when the predicate is inert."""
        if self.value is None or str(self.value).strip() == "":
            return None
        return safe_float(self.value)

    @property
    def is_active(self) -> bool:
        return bool(self.column) and self.threshold() is not None


class SortConfig(BaseModel):
    key: str
    direction: Literal["asc", "desc"] = "asc"


class QueryControls(BaseModel):
    position: str = ALL
    team: str = ALL
    predicates: list[Predicate] = Field(default_factory=list)
    logic: Literal["AND", "OR"] = "AND"
    sort: Optional[SortConfig] = None
    weights: dict[str, float] = Field(default_factory=dict)
    page: int = 1

    @field_validator("weights", mode="before")
    @classmethod
    def clamp_weights(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return {str(col): clamp_weight(w) for col, w in value.items()}


@dataclass
class QueryResult:
    frame: pd.DataFrame  # Rows on the current page
    filtered: pd.DataFrame  # Every row that passed the filters, sorted
    total_count: int
    total_pages: int
    page: int  # Clamped page number actually shown
    start_index: int
    end_index: int
    columns: list[str]  # Column universe
    numeric_columns: list[str]  # Offered for ranking and filtering


# ----------------------------
# Helpers
# ----------------------------

def is_missing(value) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def is_number(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating)) and not is_missing(value)


def to_frame(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    # object dtype keeps ints as ints and leaves mixed columns alone
    return pd.DataFrame(list(rows), dtype=object)


def compare_values(a, b) -> int:
    if is_number(a) and is_number(b):
        return (a > b) - (a < b)
    if isinstance(a, str) and isinstance(b, str):
        return locale.strcoll(a, b)
    a_str = "" if is_missing(a) else str(a)
    b_str = "" if is_missing(b) else str(b)
    return locale.strcoll(a_str, b_str)


# ----------------------------
# Pipeline stages
# ----------------------------

def predicate_number(value) -> float:
    """Row value as compared by a predicate; blanks count as 0, missing as NaN."""
    if value is None:
        return 0.0
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if isinstance(value, str):
        if not value.strip():
            return 0.0
        number = safe_float(value)
        return float("nan") if number is None else number
    number = safe_float(value)
    return float("nan") if number is None else number


def column_universe(frame: pd.DataFrame) -> list[str]:
    keys = [str(c) for c in frame.columns]
    key_set = set(keys)
    first = [k for k in KEY_COLUMNS if k in key_set]
    rest = sorted(k for k in keys if k not in KEY_COLUMNS)
    return first + rest


def numeric_columns(base: pd.DataFrame, columns: Sequence[str]) -> list[str]:
    """Columns whose value on the first (unranked) row is a number."""
    if base.empty:
        return []
    sample = base.iloc[0]
    return [
        col
        for col in columns
        if col not in NON_NUMERIC_COLUMNS and col in sample.index and is_number(sample[col])
    ]


def filter_frame(frame: pd.DataFrame, controls: QueryControls) -> pd.DataFrame:
    mask = pd.Series(True, index=frame.index)

    if controls.position and controls.position != ALL:
        mask &= frame["position"] == controls.position if "position" in frame.columns else False
    if controls.team and controls.team != ALL:
        mask &= frame["team"] == controls.team if "team" in frame.columns else False

    active = [p for p in controls.predicates[:MAX_PREDICATES] if p.is_active]
    if active:
        checks = []
        for p in active:
            if p.column in frame.columns:
                values = frame[p.column].map(predicate_number).astype(float)
            else:
                values = numeric_values(frame, p.column)
            threshold = p.threshold()
            checks.append(values >= threshold if p.operator == "gte" else values <= threshold)
        combined = pd.concat(checks, axis=1)
        mask &= combined.all(axis=1) if controls.logic == "AND" else combined.any(axis=1)

    return frame[mask.astype(bool)]


def sort_frame(frame: pd.DataFrame, sort: Optional[SortConfig]) -> pd.DataFrame:
    if sort is None or frame.empty:
        return frame
    if sort.key in frame.columns:
        values = frame[sort.key].tolist()
    else:
        values = [None] * len(frame)
    sign = -1 if sort.direction == "desc" else 1
    order = sorted(
        range(len(values)),
        key=functools.cmp_to_key(lambda i, j: sign * compare_values(values[i], values[j])),
    )
    return frame.iloc[order]


def paginate(frame: pd.DataFrame, page: int, page_size: int = PAGE_SIZE):
    total = len(frame)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    end = min(total, start + page_size)
    return frame.iloc[start:end], page, total_pages, start, end


def run_query(rows: Iterable[Mapping[str, Any]], controls: QueryControls) -> QueryResult:
    base = to_frame(rows)
    ranked = add_rank_score(base, controls.weights)
    columns = column_universe(ranked)

    filtered = sort_frame(filter_frame(ranked, controls), controls.sort)
    page_frame, page, total_pages, start, end = paginate(filtered, controls.page)

    return QueryResult(
        frame=page_frame,
        filtered=filtered,
        total_count=len(filtered),
        total_pages=total_pages,
        page=page,
        start_index=start,
        end_index=end,
        columns=columns,
        numeric_columns=numeric_columns(base, columns),
    )


def team_options(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    return sorted({r["team"] for r in rows if isinstance(r.get("team"), str)})


def search_columns(columns: Sequence[str], text: str) -> list[str]:
    if not text:
        return list(columns)
    needle = text.lower()
    return [c for c in columns if needle in format_column_header(c).lower()]


# ----------------------------
# Stateful controls
# ----------------------------

class TableState:
    def __init__(self, controls: Optional[QueryControls] = None):
        self.controls = controls or QueryControls()
        self.visibility: dict[str, bool] = {}

    # Changes that send the table back to page 1

    def set_position(self, position: Optional[str]) -> None:
        self.controls.position = position or ALL
        self.controls.page = 1

    def set_team(self, team: Optional[str]) -> None:
        self.controls.team = team or ALL
        self.controls.page = 1

    def set_sort(self, key: Optional[str], direction: str = "asc") -> None:
        self.controls.sort = SortConfig(key=key, direction=direction) if key else None
        self.controls.page = 1

    def toggle_sort(self, key: str) -> None:
        """First click sorts ascending, a second click on the same column descending."""
        current = self.controls.sort
        direction = "desc" if current and current.key == key and current.direction == "asc" else "asc"
        self.set_sort(key, direction)

    def set_page(self, page: int) -> None:
        self.controls.page = page

    # Advanced filters (page is kept)

    def add_predicate(self, numeric_cols: Sequence[str] = ()) -> bool:
        if len(self.controls.predicates) >= MAX_PREDICATES:
            return False
        column = numeric_cols[0] if numeric_cols else "total_points"
        self.controls.predicates.append(Predicate(column=column, operator="gte", value=""))
        return True

    def update_predicate(self, index: int, **changes) -> None:
        current = self.controls.predicates[index]
        self.controls.predicates[index] = current.model_copy(update=changes)

    def remove_predicate(self, index: int) -> None:
        del self.controls.predicates[index]

    def clear_predicates(self) -> None:
        self.controls.predicates = []

    def set_logic(self, logic: Literal["AND", "OR"]) -> None:
        self.controls.logic = logic

    # Ranking weights (page is kept)

    def set_weight(self, column: str, weight) -> None:
        self.controls.weights[column] = clamp_weight(weight)

    def clear_weights(self) -> None:
        self.controls.weights = {}

    @property
    def total_weight(self) -> float:
        return total_weight(self.controls.weights)

    def apply_ranking(self) -> bool:
        if not is_ranking_complete(self.controls.weights):
            return False
        self.visibility[RANK_SCORE] = True
        return True

    # Column visibility

    def _init_visibility(self, columns: Sequence[str]) -> None:
        if not self.visibility and columns:
            self.show_default_columns(columns)

    def visible_columns(self, columns: Sequence[str]) -> list[str]:
        self._init_visibility(columns)
        return [c for c in columns if self.visibility.get(c, True)]

    def toggle_column(self, column: str) -> None:
        self.visibility[column] = not self.visibility.get(column, True)

    def show_all_columns(self, columns: Sequence[str]) -> None:
        self.visibility = {c: True for c in columns}

    def show_default_columns(self, columns: Sequence[str]) -> None:
        self.visibility = {c: c in DEFAULT_VISIBLE_COLUMNS for c in columns}

    def run(self, rows: Iterable[Mapping[str, Any]]) -> QueryResult:
        result = run_query(rows, self.controls)
        self._init_visibility(result.columns)
        return result
