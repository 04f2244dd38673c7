from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


def augment_minority(
    x_train: np.ndarray,
    y_train: np.ndarray,
    numeric_dims: int,
    target_ratio: float = 0.5,
    noise_std: float = 0.05,
    rng: np.random.Generator | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Oversamples the positive class on an already scaled training matrix.

    Source rows are taken round-robin over the existing positives; only the
    first ``numeric_dims`` columns receive Gaussian jitter, one-hot columns are
    copied. Synthetic rows are appended after the originals.
    """
    target_ratio = min(max(target_ratio, 0.2), 0.8)
    noise_std = min(max(noise_std, 0.0), 0.2)
    x = np.asarray(x_train, dtype=np.float64)
    y = np.asarray(y_train)

    pos_idx = np.flatnonzero(y == 1)
    n_pos = len(pos_idx)
    n_neg = len(y) - n_pos
    if n_pos == 0:
        return x, y

    want_pos = math.floor(target_ratio * n_neg / (1 - target_ratio))
    need = want_pos - n_pos
    if need <= 0:
        return x, y

    rng = rng if rng is not None else np.random.default_rng()
    sources = pos_idx[np.arange(need) % n_pos]
    synthetic = x[sources].copy()
    synthetic[:, :numeric_dims] += rng.normal(0.0, 1.0, size=(need, numeric_dims)) * noise_std

    logger.info("Synthesized %d positive rows (target ratio %.2f)", need, target_ratio)
    x_out = np.vstack([x, synthetic])
    y_out = np.concatenate([y, np.ones(need, dtype=y.dtype)])
    return x_out, y_out
