# fantasy_draft/export.py
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd


def format_column_header(column: str) -> str:
    """'points_per_game' -> 'Points Per Game'."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in column.split("_"))


def _cell(value):
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    return value


def export_csv(filtered: pd.DataFrame, columns: Sequence[str]) -> str:
    """CSV text of every filtered row, restricted to the given (visible) columns.

    Fields are only quoted when they contain a comma, quote or newline.
    """
    columns = list(columns)
    table = filtered.reindex(columns=columns).map(_cell)
    text = table.to_csv(
        index=False,
        header=[format_column_header(c) for c in columns],
        lineterminator="\n",
        na_rep="",
    )
    # to_csv terminates the last line too
    return text[:-1] if text.endswith("\n") else text


def save_csv(filtered: pd.DataFrame, columns: Sequence[str], path: str | Path = "players-export.csv") -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(export_csv(filtered, columns))
    return path
