from __future__ import annotations

from dataclasses import dataclass

import numpy as np

VARIANCE_FLOOR = 1e-9


@dataclass(frozen=True)
class FeatureScaler:
    mean: np.ndarray
    std: np.ndarray

    @classmethod
    def fit(cls, x_train: np.ndarray) -> FeatureScaler:
        x = np.asarray(x_train, dtype=np.float64)
        if x.shape[0] == 0:
            width = x.shape[1] if x.ndim == 2 else 0
            return cls(mean=np.zeros(width), std=np.full(width, np.sqrt(VARIANCE_FLOOR)))
        mean = x.mean(axis=0)
        variance = (x * x).mean(axis=0) - mean * mean
        std = np.sqrt(np.maximum(VARIANCE_FLOOR, variance))
        mean.setflags(write=False)
        std.setflags(write=False)
        return cls(mean=mean, std=std)

    def transform(self, x: np.ndarray) -> np.ndarray:
        return (np.asarray(x, dtype=np.float64) - self.mean) / self.std
