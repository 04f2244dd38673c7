from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from attrition.config import BASE_NUMERIC_COLS, LABEL_COL
from attrition.data_models import LoadedDataset
from attrition.feature_engineering import numeric_column

RATE_COLS = ("OverTime", "JobRole")
TOP_CORRELATIONS = 8


@dataclass(frozen=True)
class EdaSummary:
    positive: int
    negative: int
    rate: float
    top_correlations: List[Tuple[str, float]]
    category_rates: Dict[str, List[Tuple[str, float]]]


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    n = min(len(x), len(y))
    if n == 0:
        return 0.0
    x = np.asarray(x[:n], dtype=float)
    y = np.asarray(y[:n], dtype=float)
    cov = np.mean(x * y) - x.mean() * y.mean()
    var_x = np.mean(x * x) - x.mean() ** 2
    var_y = np.mean(y * y) - y.mean() ** 2
    return float(cov / np.sqrt(max(var_x * var_y, 1e-12)))


def summarize(dataset: LoadedDataset) -> EdaSummary:
    frame = dataset.frame
    y = (frame[LABEL_COL].astype(str) == "Yes").astype(int).to_numpy()
    positive = int(y.sum())
    n = len(y)

    correlations = [(col, pearson(numeric_column(frame, col).to_numpy(), y)) for col in BASE_NUMERIC_COLS]
    top = sorted(correlations, key=lambda item: abs(item[1]), reverse=True)[:TOP_CORRELATIONS]

    category_rates: Dict[str, List[Tuple[str, float]]] = {}
    for col in RATE_COLS:
        if col not in frame.columns:
            continue
        rates = (
            frame.assign(_y=y)
            .groupby(frame[col].fillna("").astype(str), sort=False)["_y"]
            .mean()
            .sort_values(ascending=False, kind="stable")
        )
        category_rates[col] = [(str(k), float(v)) for k, v in rates.items()]

    return EdaSummary(
        positive=positive,
        negative=n - positive,
        rate=positive / max(1, n),
        top_correlations=top,
        category_rates=category_rates,
    )
