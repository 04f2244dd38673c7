from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from attrition.augmentation import augment_minority
from attrition.config import (
    BASE_NUMERIC_COLS,
    DROPPED_COLS,
    ENGINEERED_COLS,
    ENGINEERED_FEATURES,
    META_COLS,
    SPLIT_SEED,
    AugmentConfig,
)
from attrition.data_models import DatasetSplit, FeatureReport, LoadedDataset
from attrition.encoding import CategoricalEncoder
from attrition.feature_engineering import build_features
from attrition.partition import stratified_split
from attrition.scaling import FeatureScaler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedDataset:
    """
    Immutable result of one preparation pass.

    Matrices are read-only; preparing again yields a new value with freshly
    fitted encoder and scaler rather than mutating this one.
    """

    x_train: np.ndarray
    y_train: np.ndarray
    x_test: np.ndarray
    y_test: np.ndarray
    feature_order: Tuple[str, ...]
    encoder: CategoricalEncoder
    scaler: FeatureScaler
    split: DatasetSplit
    test_meta: pd.DataFrame
    feature_report: FeatureReport

    @property
    def n_features(self) -> int:
        return len(self.feature_order)


def to_sequences(x: np.ndarray, timesteps: int = 1) -> np.ndarray:
    """Views ``[N, F]`` rows as ``[N, timesteps, F / timesteps]`` sequences."""
    x = np.asarray(x)
    if x.ndim == 3:
        return x
    return x.reshape(x.shape[0], timesteps, x.shape[1] // timesteps)


def feature_order_for(encoder: CategoricalEncoder) -> Tuple[str, ...]:
    return tuple(BASE_NUMERIC_COLS) + tuple(ENGINEERED_COLS) + tuple(encoder.feature_names())


def build_feature_matrix(frame: pd.DataFrame, encoder: CategoricalEncoder) -> Tuple[np.ndarray, np.ndarray]:
    numeric, y = build_features(frame)
    x = np.hstack([numeric.to_numpy(dtype=np.float64), encoder.transform(frame)])
    return x, y


def build_feature_report(dataset: LoadedDataset) -> FeatureReport:
    return FeatureReport(
        kept=tuple(BASE_NUMERIC_COLS) + tuple(ENGINEERED_COLS) + dataset.categorical_cols,
        dropped=tuple(DROPPED_COLS),
        created=tuple(ENGINEERED_COLS),
        created_descriptions=dict(ENGINEERED_FEATURES),
    )


def _meta_frame(frame: pd.DataFrame, rows: np.ndarray) -> pd.DataFrame:
    subset = frame.iloc[rows]
    meta = pd.DataFrame(index=range(len(rows)))
    for col in META_COLS:
        meta[col] = subset[col].fillna("").to_numpy() if col in subset.columns else ""
    return meta


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def prepare_dataset(
    dataset: LoadedDataset,
    test_fraction: float = 0.2,
    augment: AugmentConfig | None = None,
    seed: int = SPLIT_SEED,
    rng: np.random.Generator | None = None,
) -> PreparedDataset:
    augment = (augment or AugmentConfig()).clamped()
    frame = dataset.frame

    # Vocabularies come from every loaded row, before the split.
    encoder = CategoricalEncoder.fit(frame, dataset.categorical_cols)
    x, y = build_feature_matrix(frame, encoder)

    split = stratified_split(y, test_fraction=test_fraction, seed=seed)
    scaler = FeatureScaler.fit(x[split.train_idx])
    x_train = scaler.transform(x[split.train_idx])
    x_test = scaler.transform(x[split.test_idx])
    y_train = y[split.train_idx]
    y_test = y[split.test_idx]

    if augment.enable:
        x_train, y_train = augment_minority(
            x_train,
            y_train,
            numeric_dims=len(BASE_NUMERIC_COLS) + len(ENGINEERED_COLS),
            target_ratio=augment.target_ratio,
            noise_std=augment.noise_std,
            rng=rng,
        )
        logger.info("Augmented positives to target ratio %.2f; train rows: %d", augment.target_ratio, len(x_train))

    logger.info(
        "Prepared dataset: train=%d test=%d features=%d positives(train)=%d",
        len(x_train),
        len(x_test),
        x.shape[1],
        int(np.sum(y_train == 1)),
    )
    return PreparedDataset(
        x_train=_frozen(x_train),
        y_train=_frozen(y_train),
        x_test=_frozen(x_test),
        y_test=_frozen(y_test),
        feature_order=feature_order_for(encoder),
        encoder=encoder,
        scaler=scaler,
        split=split,
        test_meta=_meta_frame(frame, split.test_idx),
        feature_report=build_feature_report(dataset),
    )
