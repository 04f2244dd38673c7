import numpy as np
import pytest

from attrition.config import AugmentConfig, FitConfig, ModelConfig, PipelineConfig
from attrition.eda import pearson, summarize
from attrition.loader import parse_csv_text
from attrition.training_pipeline import run_training


def test_end_to_end_training_run(hr_csv):
    cfg = PipelineConfig(
        augment=AugmentConfig(enable=True),
        model=ModelConfig(units=8, layers=2),
        fit=FitConfig(epochs=3, batch_size=32),
        torch_seed=1,
    )
    epochs_seen = []
    run = run_training(parse_csv_text(hr_csv), cfg, on_epoch=epochs_seen.append, augment_rng=np.random.default_rng(0))

    assert 1 <= len(run.history) <= 3
    assert len(epochs_seen) == len(run.history)
    assert 0.0 <= run.evaluation.auc <= 1.0
    assert 0.10 <= run.best_threshold.threshold <= 0.90
    assert len(run.predictions) == len(run.prepared.x_test)
    assert list(run.predictions.columns) == [
        "EmployeeNumber", "JobRole", "OverTime", "YearsAtCompany", "MonthlyIncome", "Probability", "Predicted", "True",
    ]
    assert set(run.predictions["Predicted"]) <= {"Yes", "No"}
    truth = (run.predictions["True"] == "Yes").astype(int).to_numpy()
    np.testing.assert_array_equal(truth, run.prepared.y_test)


def test_config_clamping():
    cfg = PipelineConfig(
        test_fraction=2.0,
        augment=AugmentConfig(enable=True, target_ratio=0.95, noise_std=-1.0),
        model=ModelConfig(units=1, layers=0, learning_rate=float("nan")),
        fit=FitConfig(epochs=0, batch_size=0, validation_split=0.9, patience=1),
        threshold=0.35,
    ).clamped()
    assert cfg.test_fraction == 0.9
    assert cfg.augment.target_ratio == 0.8
    assert cfg.augment.noise_std == 0.0
    assert (cfg.model.units, cfg.model.layers, cfg.model.learning_rate) == (8, 1, 1e-3)
    assert (cfg.fit.epochs, cfg.fit.batch_size, cfg.fit.validation_split, cfg.fit.patience) == (1, 1, 0.4, 2)
    assert cfg.threshold == 0.35


def test_eda_summary(hr_csv):
    summary = summarize(parse_csv_text(hr_csv))
    assert summary.positive + summary.negative == 240
    assert summary.rate == summary.positive / 240
    assert len(summary.top_correlations) == 8
    magnitudes = [abs(r) for _, r in summary.top_correlations]
    assert magnitudes == sorted(magnitudes, reverse=True)
    overtime = dict(summary.category_rates["OverTime"])
    assert set(overtime) == {"Yes", "No"}
    assert overtime["Yes"] > overtime["No"]
    assert "JobRole" in summary.category_rates


def test_pearson_handles_constant_input():
    assert pearson(np.ones(5), np.array([0, 1, 0, 1, 1])) == 0.0
    assert pearson(np.arange(5.0), np.arange(5.0)) == pytest.approx(1.0)
