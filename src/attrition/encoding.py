from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import OneHotEncoder


def _as_text(frame: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    out = pd.DataFrame(index=frame.index)
    for col in columns:
        out[col] = frame[col].fillna("").astype(str) if col in frame.columns else ""
    return out


@dataclass(frozen=True)
class CategoricalEncoder:
    """
    Per-attribute value vocabularies, each sorted lexicographically.

    The block order of the one-hot expansion follows ``columns``; inside a
    block, position ``i`` stands for ``categories[col][i]``. Unseen or missing
    values produce an all-zero block.
    """

    columns: Tuple[str, ...]
    categories: Dict[str, Tuple[str, ...]]
    onehot: OneHotEncoder | None = field(default=None, compare=False, repr=False)

    @classmethod
    def fit(cls, frame: pd.DataFrame, columns: Sequence[str]) -> CategoricalEncoder:
        columns = tuple(columns)
        text = _as_text(frame, columns)
        categories = {col: tuple(sorted(set(text[col]))) or ("",) for col in columns}
        onehot = None
        if columns:
            onehot = OneHotEncoder(
                categories=[list(categories[col]) for col in columns],
                handle_unknown="ignore",
                sparse_output=False,
                dtype=np.float64,
            ).fit(text)
        return cls(columns=columns, categories=categories, onehot=onehot)

    def index_of(self, col: str) -> Dict[str, int]:
        return {value: i for i, value in enumerate(self.categories[col])}

    @property
    def width(self) -> int:
        return sum(len(self.categories[col]) for col in self.columns)

    def feature_names(self) -> list[str]:
        return [f"{col}__{value}" for col in self.columns for value in self.categories[col]]

    def transform(self, frame: pd.DataFrame) -> np.ndarray:
        if self.onehot is None:
            return np.zeros((len(frame), 0), dtype=np.float64)
        return self.onehot.transform(_as_text(frame, self.columns))
