from __future__ import annotations

from typing import Tuple

import numpy as np
import pandas as pd

from attrition.config import BASE_NUMERIC_COLS, ENGINEERED_COLS, LABEL_COL, LABEL_MAP


def numeric_column(frame: pd.DataFrame, col: str) -> pd.Series:
    if col not in frame.columns:
        return pd.Series(0.0, index=frame.index)
    values = pd.to_numeric(frame[col], errors="coerce").astype(float)
    return values.where(np.isfinite(values), 0.0)


def flag(frame: pd.DataFrame, col: str, value: str) -> pd.Series:
    if col not in frame.columns:
        return pd.Series(0.0, index=frame.index)
    return frame[col].fillna("").astype(str).eq(value).astype(float)


def engineer_features(frame: pd.DataFrame) -> pd.DataFrame:
    years_at_company = numeric_column(frame, "YearsAtCompany")
    total_working = numeric_column(frame, "TotalWorkingYears")
    job_level = numeric_column(frame, "JobLevel")
    job_satisfaction = numeric_column(frame, "JobSatisfaction")

    engineered = pd.DataFrame(index=frame.index)
    engineered["TenureRatio"] = years_at_company / total_working.clip(lower=1)
    engineered["NoPromotionRatio"] = numeric_column(frame, "YearsSinceLastPromotion") / years_at_company.clip(lower=1)
    engineered["IncomePerLevel"] = numeric_column(frame, "MonthlyIncome") / job_level.clip(lower=1)
    engineered["OvertimeStress"] = flag(frame, "OverTime", "Yes") * (4 - job_satisfaction)
    engineered["TravelFreq"] = flag(frame, "BusinessTravel", "Travel_Frequently")
    engineered["IsSingle"] = flag(frame, "MaritalStatus", "Single")
    engineered["LongDistance"] = (numeric_column(frame, "DistanceFromHome") > 20).astype(float)
    return engineered[list(ENGINEERED_COLS)]


def encode_labels(labels: pd.Series) -> np.ndarray:
    return labels.fillna("No").astype(str).map(LABEL_MAP).fillna(0).astype(np.int64).to_numpy()


def build_features(frame: pd.DataFrame) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    Base numerics followed by engineered features, in canonical order, plus
    the binary label. Missing or non-numeric inputs become 0.
    """
    base = pd.DataFrame({col: numeric_column(frame, col) for col in BASE_NUMERIC_COLS}, index=frame.index)
    numeric = pd.concat([base, engineer_features(frame)], axis=1)
    if LABEL_COL in frame.columns:
        y = encode_labels(frame[LABEL_COL])
    else:
        y = np.zeros(len(frame), dtype=np.int64)
    return numeric, y
