import numpy as np
import pytest

from attrition.config import FitConfig, ModelConfig, PipelineConfig
from attrition.errors import ConfigurationError
from attrition.model_components import ClassifierState
from service.session import AttritionSession
from service.storage import ModelStore


def _trained_session(tmp_path, hr_csv) -> AttritionSession:
    session = AttritionSession(PipelineConfig(torch_seed=2), ModelStore(tmp_path / "artifacts"))
    session.load_text(hr_csv)
    session.prepare(test_fraction=0.2)
    session.build(ModelConfig(units=8))
    session.train(FitConfig(epochs=2, batch_size=32))
    session.evaluate()
    return session


def test_reprepare_releases_the_trained_model(tmp_path, hr_csv):
    session = _trained_session(tmp_path, hr_csv)
    old_train_rows = set(session.prepared.split.train_idx.tolist())

    session.prepare(test_fraction=0.5)

    assert session.classifier.state is ClassifierState.DISPOSED
    assert session.classifier.model is None
    assert session.history is None
    assert session.evaluation is None
    # the new test set overlaps the old training rows
    assert old_train_rows & set(session.prepared.split.test_idx.tolist())
    with pytest.raises(ConfigurationError):
        session.evaluate()
    with pytest.raises(ConfigurationError):
        session.auto_threshold()
    with pytest.raises(ConfigurationError):
        session.predictions()


def test_reload_releases_model_and_preparation(tmp_path, hr_csv):
    session = _trained_session(tmp_path, hr_csv)

    session.load_text(hr_csv)

    assert session.prepared is None
    assert session.history is None
    assert session.evaluation is None
    assert session.classifier.model is None
    with pytest.raises(ConfigurationError):
        session.build()


def test_rebuild_after_reprepare_matches_new_split(tmp_path, hr_csv):
    session = _trained_session(tmp_path, hr_csv)
    session.prepare(test_fraction=0.5)
    session.build(ModelConfig(units=8))
    session.train(FitConfig(epochs=1, batch_size=32))

    result = session.evaluate(threshold=0.4)
    cm = result.confusion
    assert cm.tp + cm.tn + cm.fp + cm.fn == len(session.prepared.y_test)
    assert np.isfinite(result.auc)
