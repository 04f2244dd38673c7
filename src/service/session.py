from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

import pandas as pd

from attrition.config import AugmentConfig, FitConfig, ModelConfig, PipelineConfig
from attrition.data_models import FeatureReport, LoadedDataset
from attrition.eda import EdaSummary, summarize
from attrition.errors import ConfigurationError
from attrition.loader import parse_csv_text
from attrition.metrics import EvaluationResult, ThresholdResult, optimize_threshold
from attrition.model_components import EpochLog, SequenceClassifier, TrainingHistory
from attrition.preparation import PreparedDataset, prepare_dataset, to_sequences
from attrition.reporting import collect_predictions, predictions_frame
from service.storage import ModelStore

logger = logging.getLogger(__name__)


class AttritionSession:
    """
    One user's workspace: a loaded table, its current preparation, the
    classifier and the latest evaluation outputs.

    Anything derived from a superseded dataset or model is dropped as soon as
    it is replaced.
    """

    def __init__(self, config: PipelineConfig, store: ModelStore, store_name: str = "attrition-gru") -> None:
        self.config = config.clamped()
        self.store = store
        self.store_name = store_name
        self.classifier = SequenceClassifier(seed=self.config.torch_seed)
        self.dataset: LoadedDataset | None = None
        self.prepared: PreparedDataset | None = None
        self.history: TrainingHistory | None = None
        self.evaluation: EvaluationResult | None = None
        self.last_predictions: pd.DataFrame | None = None
        self.threshold = self.config.threshold

    def _require_dataset(self) -> LoadedDataset:
        if self.dataset is None:
            raise ConfigurationError("Load data first.")
        return self.dataset

    def _require_prepared(self) -> PreparedDataset:
        if self.prepared is None:
            raise ConfigurationError("Prepare dataset first.")
        return self.prepared

    def _release_model(self) -> None:
        self.classifier.dispose()
        self.history = None
        self.evaluation = None
        self.last_predictions = None

    def load_text(self, text: str) -> LoadedDataset:
        dataset = parse_csv_text(text)
        self._release_model()
        self.dataset = dataset
        self.prepared = None
        return dataset

    def eda(self) -> EdaSummary:
        return summarize(self._require_dataset())

    def prepare(self, test_fraction: float | None = None, augment: AugmentConfig | None = None) -> PreparedDataset:
        dataset = self._require_dataset()
        cfg = replace(
            self.config,
            test_fraction=self.config.test_fraction if test_fraction is None else test_fraction,
            augment=augment or self.config.augment,
        ).clamped()
        self._release_model()
        self.prepared = None
        self.prepared = prepare_dataset(dataset, test_fraction=cfg.test_fraction, augment=cfg.augment, seed=cfg.split_seed)
        return self.prepared

    def feature_report(self) -> FeatureReport:
        return self._require_prepared().feature_report

    def build(self, model: ModelConfig | None = None) -> dict:
        prepared = self._require_prepared()
        cfg = (model or self.config.model).clamped()
        x_train = to_sequences(prepared.x_train)
        self.history = None
        self.evaluation = None
        self.last_predictions = None
        self.classifier.build(
            timesteps=x_train.shape[1],
            features=x_train.shape[2],
            units=cfg.units,
            layers=cfg.layers,
            learning_rate=cfg.learning_rate,
        )
        return dict(self.classifier.architecture or {})

    def train(self, fit: FitConfig | None = None, on_epoch: Callable[[EpochLog], None] | None = None) -> TrainingHistory:
        prepared = self._require_prepared()
        cfg = (fit or self.config.fit).clamped()
        self.history = self.classifier.fit(
            to_sequences(prepared.x_train),
            prepared.y_train,
            epochs=cfg.epochs,
            batch_size=cfg.batch_size,
            validation_split=cfg.validation_split,
            patience=cfg.patience,
            on_epoch=on_epoch,
        )
        return self.history

    def evaluate(self, threshold: float | None = None) -> EvaluationResult:
        prepared = self._require_prepared()
        if threshold is not None:
            self.threshold = threshold
        x_test = to_sequences(prepared.x_test)
        probs = self.classifier.predict(x_test)
        self.evaluation = self.classifier.evaluate(x_test, prepared.y_test, threshold=self.threshold)
        rows = collect_predictions(prepared.test_meta, probs, prepared.y_test, threshold=self.threshold)
        self.last_predictions = predictions_frame(rows)
        return self.evaluation

    def auto_threshold(self) -> ThresholdResult:
        prepared = self._require_prepared()
        probs = self.classifier.predict(to_sequences(prepared.x_test))
        best = optimize_threshold(probs, prepared.y_test)
        self.threshold = best.threshold
        return best

    def predictions(self) -> pd.DataFrame:
        if self.last_predictions is None:
            raise ConfigurationError("No predictions yet. Run evaluate first.")
        return self.last_predictions

    def save_model(self, name: str | None = None) -> str:
        target = name or self.store_name
        self.store.save(target, self.classifier.export_state())
        return target

    def load_model(self, name: str | None = None) -> dict:
        payload = self.store.load(name or self.store_name)
        self.classifier.load_state(payload)
        self.history = None
        self.evaluation = None
        self.last_predictions = None
        return dict(self.classifier.architecture or {})

    def reset(self) -> None:
        self._release_model()
        self.dataset = None
        self.prepared = None
        self.threshold = self.config.threshold
        logger.info("Session reset")
