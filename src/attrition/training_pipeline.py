from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
import pandas as pd

from attrition.config import PipelineConfig
from attrition.data_models import LoadedDataset
from attrition.metrics import EvaluationResult, ThresholdResult, optimize_threshold
from attrition.model_components import EpochLog, SequenceClassifier, TrainingHistory
from attrition.preparation import PreparedDataset, prepare_dataset, to_sequences
from attrition.reporting import collect_predictions, predictions_frame

logger = logging.getLogger(__name__)


@dataclass
class TrainingRun:
    prepared: PreparedDataset
    classifier: SequenceClassifier
    history: TrainingHistory
    evaluation: EvaluationResult
    best_threshold: ThresholdResult
    predictions: pd.DataFrame


def run_training(
    dataset: LoadedDataset,
    config: PipelineConfig | None = None,
    on_epoch: Callable[[EpochLog], None] | None = None,
    augment_rng: np.random.Generator | None = None,
) -> TrainingRun:
    cfg = (config or PipelineConfig()).clamped()
    prepared = prepare_dataset(
        dataset,
        test_fraction=cfg.test_fraction,
        augment=cfg.augment,
        seed=cfg.split_seed,
        rng=augment_rng,
    )
    x_train = to_sequences(prepared.x_train)
    x_test = to_sequences(prepared.x_test)

    classifier = SequenceClassifier(seed=cfg.torch_seed)
    classifier.build(
        timesteps=x_train.shape[1],
        features=x_train.shape[2],
        units=cfg.model.units,
        layers=cfg.model.layers,
        learning_rate=cfg.model.learning_rate,
    )
    history = classifier.fit(
        x_train,
        prepared.y_train,
        epochs=cfg.fit.epochs,
        batch_size=cfg.fit.batch_size,
        validation_split=cfg.fit.validation_split,
        patience=cfg.fit.patience,
        on_epoch=on_epoch,
    )

    probs = classifier.predict(x_test)
    evaluation = classifier.evaluate(x_test, prepared.y_test, threshold=cfg.threshold)
    best = optimize_threshold(probs, prepared.y_test)
    rows = collect_predictions(prepared.test_meta, probs, prepared.y_test, threshold=cfg.threshold)
    logger.info("Training run finished after %d epochs (early stop=%s)", len(history), history.stopped_early)
    return TrainingRun(
        prepared=prepared,
        classifier=classifier,
        history=history,
        evaluation=evaluation,
        best_threshold=best,
        predictions=predictions_frame(rows),
    )
