from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

LABEL_COL = "Attrition"
LABEL_MAP: Dict[str, int] = {"Yes": 1, "No": 0}

BASE_NUMERIC_COLS: Tuple[str, ...] = (
    "Age",
    "DailyRate",
    "DistanceFromHome",
    "Education",
    "EnvironmentSatisfaction",
    "HourlyRate",
    "JobInvolvement",
    "JobLevel",
    "JobSatisfaction",
    "MonthlyIncome",
    "MonthlyRate",
    "NumCompaniesWorked",
    "PercentSalaryHike",
    "PerformanceRating",
    "RelationshipSatisfaction",
    "StockOptionLevel",
    "TotalWorkingYears",
    "TrainingTimesLastYear",
    "WorkLifeBalance",
    "YearsAtCompany",
    "YearsInCurrentRole",
    "YearsSinceLastPromotion",
    "YearsWithCurrManager",
)

CATEGORICAL_COLS: Tuple[str, ...] = (
    "BusinessTravel",
    "Department",
    "EducationField",
    "Gender",
    "JobRole",
    "MaritalStatus",
    "OverTime",
)

# Removed from model inputs as identifiers or constants.
DROPPED_COLS: Tuple[str, ...] = ("EmployeeNumber", "EmployeeCount", "StandardHours", "Over18")

META_COLS: Tuple[str, ...] = ("EmployeeNumber", "JobRole", "OverTime", "YearsAtCompany", "MonthlyIncome")

ENGINEERED_FEATURES: Tuple[Tuple[str, str], ...] = (
    ("TenureRatio", "YearsAtCompany / max(1, TotalWorkingYears)"),
    ("NoPromotionRatio", "YearsSinceLastPromotion / max(1, YearsAtCompany)"),
    ("IncomePerLevel", "MonthlyIncome / max(1, JobLevel)"),
    ("OvertimeStress", "(OverTime=='Yes') * (4 - JobSatisfaction)"),
    ("TravelFreq", "BusinessTravel=='Travel_Frequently' ? 1 : 0"),
    ("IsSingle", "MaritalStatus=='Single' ? 1 : 0"),
    ("LongDistance", "DistanceFromHome > 20 ? 1 : 0"),
)
ENGINEERED_COLS: Tuple[str, ...] = tuple(name for name, _ in ENGINEERED_FEATURES)

SPLIT_SEED = 1337
THRESHOLD_SCAN = (0.10, 0.90, 0.01)


def _number(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return out if math.isfinite(out) else default


def _clamp(value: object, default: float, low: float, high: float) -> float:
    return min(max(_number(value, default), low), high)


def _at_least(value: object, default: int, low: int) -> int:
    return max(low, int(_number(value, default)))


@dataclass(frozen=True)
class AugmentConfig:
    enable: bool = False
    target_ratio: float = 0.5
    noise_std: float = 0.05

    def clamped(self) -> AugmentConfig:
        return replace(
            self,
            enable=bool(self.enable),
            target_ratio=_clamp(self.target_ratio, 0.5, 0.2, 0.8),
            noise_std=_clamp(self.noise_std, 0.05, 0.0, 0.2),
        )


@dataclass(frozen=True)
class ModelConfig:
    units: int = 128
    layers: int = 1
    learning_rate: float = 1e-3

    def clamped(self) -> ModelConfig:
        lr = _number(self.learning_rate, 1e-3)
        return replace(
            self,
            units=_at_least(self.units, 128, 8),
            layers=_at_least(self.layers, 1, 1),
            learning_rate=lr if lr > 0 else 1e-3,
        )


@dataclass(frozen=True)
class FitConfig:
    epochs: int = 45
    batch_size: int = 16
    validation_split: float = 0.2
    patience: int = 6

    def clamped(self) -> FitConfig:
        return replace(
            self,
            epochs=_at_least(self.epochs, 45, 1),
            batch_size=_at_least(self.batch_size, 16, 1),
            validation_split=_clamp(self.validation_split, 0.2, 0.05, 0.4),
            patience=_at_least(self.patience, 6, 2),
        )


@dataclass(frozen=True)
class PipelineConfig:
    test_fraction: float = 0.2
    augment: AugmentConfig = field(default_factory=AugmentConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    fit: FitConfig = field(default_factory=FitConfig)
    threshold: float = 0.5
    split_seed: int = SPLIT_SEED
    torch_seed: int | None = None

    def clamped(self) -> PipelineConfig:
        return replace(
            self,
            test_fraction=_clamp(self.test_fraction, 0.2, 0.05, 0.9),
            augment=self.augment.clamped(),
            model=self.model.clamped(),
            fit=self.fit.clamped(),
            threshold=_number(self.threshold, 0.5),
        )
