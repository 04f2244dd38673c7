from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class LoadedDataset:
    """
    Rows retained by the loader, one string-valued record per data line.

    ``frame`` only holds allow-listed columns; ``categorical_cols`` are the
    known categoricals actually present in the header, in canonical order.
    """

    headers: Tuple[str, ...]
    frame: pd.DataFrame
    categorical_cols: Tuple[str, ...]

    @property
    def n_rows(self) -> int:
        return len(self.frame)


@dataclass(frozen=True)
class DatasetSplit:
    train_idx: np.ndarray
    test_idx: np.ndarray


@dataclass(frozen=True)
class FeatureReport:
    kept: Tuple[str, ...]
    dropped: Tuple[str, ...]
    created: Tuple[str, ...]
    created_descriptions: Dict[str, str]


@dataclass(frozen=True)
class PredictionRow:
    employee_number: str
    job_role: str
    over_time: str
    years_at_company: str
    monthly_income: str
    probability: float
    predicted: str
    actual: str
