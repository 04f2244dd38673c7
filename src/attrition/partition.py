from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Sequence

import numpy as np

from attrition.config import SPLIT_SEED
from attrition.data_models import DatasetSplit

_MODULUS = 2**32


@dataclass
class LinearCongruentialGenerator:
    """Numerical Recipes LCG yielding floats in [0, 1)."""

    seed: int = SPLIT_SEED

    def __post_init__(self) -> None:
        self.state = self.seed % _MODULUS

    def random(self) -> float:
        self.state = (self.state * 1664525 + 1013904223) % _MODULUS
        return self.state / _MODULUS


def seeded_shuffle(items: List[int], rng: LinearCongruentialGenerator) -> List[int]:
    for i in range(len(items) - 1, 0, -1):
        j = math.floor(rng.random() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def stratified_split(
    labels: Sequence[int],
    test_fraction: float = 0.2,
    seed: int = SPLIT_SEED,
    rng_factory: Callable[[int], LinearCongruentialGenerator] = LinearCongruentialGenerator,
) -> DatasetSplit:
    """
    Label-stratified train/test partition.

    Each class bucket is shuffled with its own freshly seeded generator, so the
    same labels and seed always produce the same indices. The test share of
    positives follows the global positive rate.
    """
    y = np.asarray(labels)
    n = len(y)
    pos_idx = seeded_shuffle([i for i in range(n) if y[i] == 1], rng_factory(seed))
    neg_idx = seeded_shuffle([i for i in range(n) if y[i] != 1], rng_factory(seed))

    fraction = min(max(test_fraction, 0.05), 0.9)
    n_test = max(1, math.floor(n * fraction))
    # half-up rounding, not banker's
    test_pos = math.floor(n_test * (len(pos_idx) / max(1, n)) + 0.5)
    test_pos = max(0, min(test_pos, len(pos_idx)))
    test_neg = min(n_test - test_pos, len(neg_idx))

    test_idx = pos_idx[:test_pos] + neg_idx[:test_neg]
    train_idx = pos_idx[test_pos:] + neg_idx[test_neg:]
    return DatasetSplit(
        train_idx=np.asarray(train_idx, dtype=np.int64),
        test_idx=np.asarray(test_idx, dtype=np.int64),
    )
