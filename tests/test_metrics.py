import numpy as np
import pytest
from sklearn.metrics import confusion_matrix, f1_score, roc_auc_score

from attrition.metrics import (
    ConfusionMatrix,
    confusion_at,
    evaluate_probabilities,
    optimize_threshold,
    roc_auc,
    threshold_grid,
)


def test_confusion_counts_and_scores():
    y = [1, 1, 0, 0, 1, 0]
    p = [0.9, 0.4, 0.6, 0.1, 0.5, 0.49]
    cm = confusion_at(y, p, threshold=0.5)
    assert cm == ConfusionMatrix(tp=2, tn=2, fp=1, fn=1)
    assert cm.precision == pytest.approx(2 / 3)
    assert cm.recall == pytest.approx(2 / 3)
    assert cm.f1 == pytest.approx(2 / 3)


def test_scores_with_no_positive_predictions_are_zero():
    cm = confusion_at([1, 0, 0], [0.1, 0.2, 0.3], threshold=0.5)
    assert (cm.tp, cm.fp, cm.fn, cm.tn) == (0, 0, 1, 2)
    assert cm.precision == 0.0
    assert cm.recall == 0.0
    assert cm.f1 == 0.0


def test_perfect_ranking_has_auc_one():
    y = [0, 0, 0, 1, 1]
    p = [0.1, 0.2, 0.3, 0.8, 0.9]
    assert roc_auc(y, p) == 1.0


def test_inverted_ranking_has_auc_zero():
    assert roc_auc([1, 1, 0, 0], [0.1, 0.2, 0.8, 0.9]) == 0.0


def test_random_scores_give_auc_near_half():
    rng = np.random.default_rng(11)
    y = np.array([0, 1] * 2000)
    p = rng.random(len(y))
    assert roc_auc(y, p) == pytest.approx(0.5, abs=0.03)


def test_auc_matches_sklearn_without_ties():
    rng = np.random.default_rng(5)
    y = (rng.random(300) < 0.3).astype(int)
    p = rng.normal(0.4 + 0.2 * y, 0.2)
    assert roc_auc(y, p) == pytest.approx(roc_auc_score(y, p), abs=1e-9)


def test_evaluate_probabilities_matches_sklearn():
    rng = np.random.default_rng(8)
    y = (rng.random(200) < 0.25).astype(int)
    p = rng.random(200)
    result = evaluate_probabilities(y, p, threshold=0.4)
    tn, fp, fn, tp = confusion_matrix(y, (p >= 0.4).astype(int)).ravel()
    assert (result.confusion.tp, result.confusion.tn, result.confusion.fp, result.confusion.fn) == (tp, tn, fp, fn)
    assert result.f1 == pytest.approx(f1_score(y, (p >= 0.4).astype(int)))
    assert result.to_dict()["confusion"] == {"tp": tp, "tn": tn, "fp": fp, "fn": fn}


def test_threshold_grid_is_inclusive():
    grid = threshold_grid()
    assert len(grid) == 81
    assert grid[0] == 0.10
    assert grid[-1] == 0.90
    assert 0.37 in grid


def test_optimizer_recovers_known_cut():
    y = np.array([0] * 50 + [1] * 50)
    p = np.concatenate([np.linspace(0.05, 0.36, 50), np.linspace(0.38, 0.95, 50)])
    best = optimize_threshold(p, y)
    assert best.f1 == pytest.approx(1.0)
    # every cut in (0.36, 0.38] separates the classes; the lowest one on the grid wins
    assert best.threshold == 0.37


def test_optimizer_keeps_first_of_tied_thresholds():
    y = [1, 0]
    p = [0.95, 0.05]
    best = optimize_threshold(p, y)
    assert best.threshold == 0.10
    assert best.f1 == pytest.approx(1.0)


def test_optimizer_defaults_when_nothing_scores():
    best = optimize_threshold([0.2, 0.3], [0, 0])
    assert best.threshold == 0.5
    assert best.f1 == 0.0
