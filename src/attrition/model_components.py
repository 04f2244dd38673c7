from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator

import numpy as np
import torch
from torch import nn
from torch.utils.data import DataLoader, TensorDataset

from attrition.errors import ConfigurationError
from attrition.metrics import EvaluationResult, evaluate_probabilities
from attrition.preparation import to_sequences

logger = logging.getLogger(__name__)

DENSE_UNITS = 64
DROPOUT = 0.2
MIN_DELTA = 1e-6


class GRUStack(nn.Module):
    def __init__(self, features: int, units: int, layers: int) -> None:
        super().__init__()
        self.input_dropout = nn.ModuleList([nn.Dropout(DROPOUT) for _ in range(layers)])
        self.recurrent = nn.ModuleList(
            [nn.GRU(features if i == 0 else units, units, batch_first=True) for i in range(layers)]
        )
        self.head = nn.Sequential(
            nn.Linear(units, DENSE_UNITS),
            nn.ReLU(),
            nn.Dropout(DROPOUT),
            nn.Linear(DENSE_UNITS, 1),
            nn.Sigmoid(),
        )
        self._init_weights()

    def _init_weights(self) -> None:
        for name, param in self.named_parameters():
            if "bias" in name:
                nn.init.zeros_(param)
            elif "weight_hh" in name:
                nn.init.orthogonal_(param)
            else:
                nn.init.kaiming_normal_(param)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        out = x
        for dropout, gru in zip(self.input_dropout, self.recurrent):
            out, _ = gru(dropout(out))
        # only the last layer's final step feeds the head
        return self.head(out[:, -1, :]).squeeze(-1)


class ClassifierState(str, Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"
    TRAINED = "trained"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class EpochLog:
    epoch: int
    loss: float
    val_loss: float | None


@dataclass
class TrainingHistory:
    epochs: list[EpochLog] = field(default_factory=list)
    stopped_early: bool = False

    def append(self, log: EpochLog) -> None:
        self.epochs.append(log)

    def __len__(self) -> int:
        return len(self.epochs)

    @property
    def loss(self) -> list[float]:
        return [e.loss for e in self.epochs]

    @property
    def val_loss(self) -> list[float]:
        return [e.val_loss for e in self.epochs if e.val_loss is not None]

    def to_dict(self) -> dict[str, list[float]]:
        return {"loss": self.loss, "val_loss": self.val_loss}


def _positive_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value >= 1


class SequenceClassifier:
    """
    Stacked-GRU attrition classifier.

    Lifecycle: unbuilt -> built -> trained -> disposed. ``build`` on an
    existing model discards it; training runs are serialized per instance.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self.model: GRUStack | None = None
        self.optimizer: torch.optim.Optimizer | None = None
        self.architecture: dict[str, Any] | None = None
        self.state = ClassifierState.UNBUILT
        self._busy = threading.Lock()

    @property
    def input_shape(self) -> tuple[int, int] | None:
        if self.architecture is None:
            return None
        return self.architecture["timesteps"], self.architecture["features"]

    def build(
        self,
        timesteps: int,
        features: int,
        units: int = 128,
        layers: int = 1,
        learning_rate: float = 1e-3,
    ) -> GRUStack:
        if not _positive_int(features):
            raise ConfigurationError(f"Invalid features: {features}")
        if not _positive_int(timesteps):
            raise ConfigurationError(f"Invalid timesteps: {timesteps}")
        if self._busy.locked():
            raise ConfigurationError("Cannot rebuild while training is in progress")

        self.dispose()
        units = max(8, int(units))
        layers = max(1, int(layers))
        lr = learning_rate if isinstance(learning_rate, (int, float)) and learning_rate > 0 else 1e-3
        if self.seed is not None:
            torch.manual_seed(self.seed)

        self.model = GRUStack(features=int(features), units=units, layers=layers)
        self.optimizer = torch.optim.Adam(self.model.parameters(), lr=lr)
        self.architecture = {
            "timesteps": int(timesteps),
            "features": int(features),
            "units": units,
            "layers": layers,
            "learning_rate": float(lr),
        }
        self.state = ClassifierState.BUILT
        logger.info("Built GRU: input [%d, %d], units=%d, layers=%d", timesteps, features, units, layers)
        return self.model

    def _require_model(self) -> GRUStack:
        if self.model is None:
            raise ConfigurationError("Build the model first.")
        return self.model

    def _as_tensor(self, x: np.ndarray) -> torch.Tensor:
        timesteps, features = self.input_shape  # type: ignore[misc]
        seq = np.asarray(x, dtype=np.float32)
        if seq.ndim == 2 and seq.shape[1] == timesteps * features:
            seq = to_sequences(seq, timesteps)
        if seq.ndim != 3 or seq.shape[1:] != (timesteps, features):
            raise ConfigurationError(f"Expected input [N, {timesteps}, {features}], got {list(seq.shape)}")
        return torch.tensor(np.array(seq, dtype=np.float32))

    def _require_optimizer(self) -> torch.optim.Optimizer:
        if self.optimizer is None:
            raise ConfigurationError("Build the model first.")
        return self.optimizer

    @staticmethod
    def _mean_loss(model: GRUStack, x: torch.Tensor, y: torch.Tensor, loss_fn: nn.Module) -> float:
        model.eval()
        with torch.no_grad():
            return float(loss_fn(model(x), y).item())

    def fit_epochs(
        self,
        x_train: np.ndarray,
        y_train: np.ndarray,
        history: TrainingHistory,
        epochs: int = 45,
        batch_size: int = 16,
        validation_split: float = 0.2,
        patience: int = 6,
    ) -> Iterator[EpochLog]:
        """
        Trains one epoch per iteration and yields its log, giving the caller
        a turn between epochs. Stops once validation loss has not improved
        for ``patience`` consecutive epochs.
        """
        model = self._require_model()
        if not self._busy.acquire(blocking=False):
            raise ConfigurationError("Training already in progress")
        try:
            epochs = max(1, int(epochs))
            batch_size = max(1, int(batch_size))
            validation_split = min(max(float(validation_split), 0.05), 0.4)
            patience = max(2, int(patience))

            x_all = self._as_tensor(x_train)
            y_all = torch.tensor(np.asarray(y_train, dtype=np.float32).reshape(-1))
            generator = torch.Generator()
            if self.seed is not None:
                generator.manual_seed(self.seed)
            else:
                generator.seed()

            n = x_all.shape[0]
            n_val = math.floor(n * validation_split)
            if n_val < 1 or n_val >= n:
                n_val = 0
            order = torch.randperm(n, generator=generator)
            val_rows, fit_rows = order[:n_val], order[n_val:]
            x_fit, y_fit = x_all[fit_rows], y_all[fit_rows]
            x_val, y_val = x_all[val_rows], y_all[val_rows]

            loader = DataLoader(TensorDataset(x_fit, y_fit), batch_size=batch_size, shuffle=True, generator=generator)
            loss_fn = nn.BCELoss()
            optimizer = self._require_optimizer()
            best = math.inf
            bad_epochs = 0

            for epoch in range(epochs):
                model.train()
                total = 0.0
                seen = 0
                for xb, yb in loader:
                    optimizer.zero_grad()
                    loss = loss_fn(model(xb), yb)
                    loss.backward()
                    optimizer.step()
                    total += float(loss.item()) * xb.size(0)
                    seen += xb.size(0)
                self.state = ClassifierState.TRAINED

                val_loss = self._mean_loss(model, x_val, y_val, loss_fn) if n_val else None
                log = EpochLog(epoch=epoch + 1, loss=total / max(seen, 1), val_loss=val_loss)
                history.append(log)
                logger.info(
                    "Epoch %d/%d - loss=%.4f val_loss=%s",
                    log.epoch,
                    epochs,
                    log.loss,
                    f"{val_loss:.4f}" if val_loss is not None else "n/a",
                )

                stop = False
                if val_loss is not None and math.isfinite(val_loss):
                    if val_loss + MIN_DELTA < best:
                        best = val_loss
                        bad_epochs = 0
                    else:
                        bad_epochs += 1
                    stop = bad_epochs >= patience

                yield log
                if stop:
                    history.stopped_early = True
                    logger.info("Early stopping (no val_loss improvement %d epochs).", patience)
                    break
        finally:
            self._busy.release()

    def fit(
        self,
        x_train: np.ndarray,
        y_train: np.ndarray,
        epochs: int = 45,
        batch_size: int = 16,
        validation_split: float = 0.2,
        patience: int = 6,
        on_epoch: Callable[[EpochLog], None] | None = None,
    ) -> TrainingHistory:
        history = TrainingHistory()
        for log in self.fit_epochs(
            x_train,
            y_train,
            history,
            epochs=epochs,
            batch_size=batch_size,
            validation_split=validation_split,
            patience=patience,
        ):
            if on_epoch is not None:
                on_epoch(log)
        return history

    def predict(self, x: np.ndarray) -> np.ndarray:
        model = self._require_model()
        inputs = self._as_tensor(x)
        was_training = model.training
        model.eval()
        try:
            with torch.no_grad():
                probs = model(inputs).numpy().astype(np.float64)
        finally:
            model.train(was_training)
        return probs

    def evaluate(self, x_test: np.ndarray, y_test: np.ndarray, threshold: float = 0.5) -> EvaluationResult:
        probs = self.predict(x_test)
        result = evaluate_probabilities(y_test, probs, threshold)
        logger.info(
            "Evaluation @%.2f: precision=%.4f recall=%.4f f1=%.4f auc=%.4f",
            threshold,
            result.precision,
            result.recall,
            result.f1,
            result.auc,
        )
        return result

    def export_state(self) -> dict[str, Any]:
        model = self._require_model()
        return {
            "architecture": dict(self.architecture or {}),
            "state_dict": {k: v.detach().cpu().clone() for k, v in model.state_dict().items()},
        }

    def load_state(self, payload: dict[str, Any]) -> GRUStack:
        arch = payload["architecture"]
        model = self.build(
            timesteps=arch["timesteps"],
            features=arch["features"],
            units=arch["units"],
            layers=arch["layers"],
            learning_rate=arch["learning_rate"],
        )
        model.load_state_dict(payload["state_dict"])
        self.state = ClassifierState.TRAINED
        return model

    @classmethod
    def from_state(cls, payload: dict[str, Any], seed: int | None = None) -> SequenceClassifier:
        classifier = cls(seed=seed)
        classifier.load_state(payload)
        return classifier

    def dispose(self) -> None:
        if self._busy.locked():
            raise ConfigurationError("Cannot dispose while training is in progress")
        if self.model is not None:
            self.model = None
            self.optimizer = None
            self.architecture = None
            self.state = ClassifierState.DISPOSED

    def __enter__(self) -> SequenceClassifier:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()
