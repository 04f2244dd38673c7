from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

import numpy as np
import pandas as pd

from attrition.data_models import PredictionRow

EXPORT_COLUMNS = {
    "employee_number": "EmployeeNumber",
    "job_role": "JobRole",
    "over_time": "OverTime",
    "years_at_company": "YearsAtCompany",
    "monthly_income": "MonthlyIncome",
    "probability": "Probability",
    "predicted": "Predicted",
    "actual": "True",
}


def collect_predictions(
    test_meta: pd.DataFrame,
    probs: Sequence[float],
    y_true: Sequence[int],
    threshold: float = 0.5,
) -> list[PredictionRow]:
    rows = []
    meta_records = test_meta.to_dict("records")
    for i, (prob, truth) in enumerate(zip(np.asarray(probs, dtype=float), np.asarray(y_true))):
        meta = meta_records[i] if i < len(meta_records) else {}
        rows.append(
            PredictionRow(
                employee_number=str(meta.get("EmployeeNumber", "")),
                job_role=str(meta.get("JobRole", "")),
                over_time=str(meta.get("OverTime", "")),
                years_at_company=str(meta.get("YearsAtCompany", "")),
                monthly_income=str(meta.get("MonthlyIncome", "")),
                probability=round(float(prob), 6),
                predicted="Yes" if prob >= threshold else "No",
                actual="Yes" if truth == 1 else "No",
            )
        )
    return rows


def predictions_frame(rows: Sequence[PredictionRow]) -> pd.DataFrame:
    frame = pd.DataFrame([asdict(r) for r in rows], columns=list(EXPORT_COLUMNS))
    return frame.rename(columns=EXPORT_COLUMNS)
