from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

from attrition.config import THRESHOLD_SCAN

logger = logging.getLogger(__name__)

F1_EPS = 1e-9


@dataclass(frozen=True)
class ConfusionMatrix:
    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def precision(self) -> float:
        return self.tp / max(1, self.tp + self.fp)

    @property
    def recall(self) -> float:
        return self.tp / max(1, self.tp + self.fn)

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / max(F1_EPS, p + r)


@dataclass(frozen=True)
class EvaluationResult:
    precision: float
    recall: float
    f1: float
    auc: float
    confusion: ConfusionMatrix

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ThresholdResult:
    threshold: float
    f1: float


def _binary(y: Sequence[float]) -> np.ndarray:
    return (np.asarray(y, dtype=float).reshape(-1) == 1).astype(int)


def confusion_at(y_true: Sequence[float], probs: Sequence[float], threshold: float) -> ConfusionMatrix:
    truth = _binary(y_true)
    preds = (np.asarray(probs, dtype=float).reshape(-1) >= threshold).astype(int)
    tn, fp, fn, tp = confusion_matrix(truth, preds, labels=[0, 1]).ravel()
    return ConfusionMatrix(tp=int(tp), tn=int(tn), fp=int(fp), fn=int(fn))


def roc_auc(y_true: Sequence[float], probs: Sequence[float]) -> float:
    """
    Area under the ROC step curve built by ranking rows by descending
    probability, one point per row (tied scores are not merged), closed at
    (1, 1) and integrated with the trapezoidal rule.
    """
    truth = _binary(y_true)
    scores = np.asarray(probs, dtype=float).reshape(-1)
    order = np.argsort(-scores, kind="stable")
    ranked = truth[order]
    n_pos = int(ranked.sum())
    n_neg = len(ranked) - n_pos

    tpr = np.concatenate([[0.0], np.cumsum(ranked) / max(1, n_pos), [1.0]])
    fpr = np.concatenate([[0.0], np.cumsum(1 - ranked) / max(1, n_neg), [1.0]])
    area = float(np.sum(np.diff(fpr) * (tpr[1:] + tpr[:-1]) / 2))
    return min(1.0, max(0.0, area))


def evaluate_probabilities(y_true: Sequence[float], probs: Sequence[float], threshold: float = 0.5) -> EvaluationResult:
    cm = confusion_at(y_true, probs, threshold)
    return EvaluationResult(
        precision=cm.precision,
        recall=cm.recall,
        f1=cm.f1,
        auc=roc_auc(y_true, probs),
        confusion=cm,
    )


def threshold_grid(start: float = THRESHOLD_SCAN[0], stop: float = THRESHOLD_SCAN[1], step: float = THRESHOLD_SCAN[2]) -> list[float]:
    count = int(round((stop - start) / step))
    return [round(start + k * step, 2) for k in range(count + 1)]


def optimize_threshold(probs: Sequence[float], y_true: Sequence[float]) -> ThresholdResult:
    """
    Ascending scan over 0.10..0.90; only a strictly better F1 replaces the
    incumbent, so the lowest threshold wins ties.
    """
    best = ThresholdResult(threshold=0.5, f1=0.0)
    for threshold in threshold_grid():
        f1 = confusion_at(y_true, probs, threshold).f1
        if f1 > best.f1:
            best = ThresholdResult(threshold=round(threshold, 2), f1=f1)
    logger.info("Best F1 at threshold %.2f: %.3f", best.threshold, best.f1)
    return best
