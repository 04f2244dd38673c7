from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from attrition.config import AugmentConfig, FitConfig, ModelConfig
from attrition.errors import ConfigurationError, SchemaError
from service.logging_config import bound_run_id, configure_logging
from service.session import AttritionSession
from service.settings import ServiceSettings
from service.storage import ModelStore


# ── Request / Response Models ───────────────────────────────────────

class DatasetResponse(BaseModel):
    rows: int
    categorical_columns: list[str]


class PrepareRequest(BaseModel):
    test_fraction: float | None = None
    augment_enable: bool | None = None
    augment_target_ratio: float | None = None
    augment_noise_std: float | None = None


class PrepareResponse(BaseModel):
    train_rows: int
    test_rows: int
    features: int
    feature_order: list[str]


class FeatureReportResponse(BaseModel):
    kept: list[str]
    dropped: list[str]
    created: list[str]
    created_descriptions: dict[str, str]


class BuildRequest(BaseModel):
    units: int | None = Field(default=None, ge=1)
    layers: int | None = Field(default=None, ge=1)
    learning_rate: float | None = Field(default=None, gt=0)


class TrainRequest(BaseModel):
    epochs: int | None = Field(default=None, ge=1)
    batch_size: int | None = Field(default=None, ge=1)
    validation_split: float | None = None
    patience: int | None = None


class HistoryResponse(BaseModel):
    loss: list[float]
    val_loss: list[float]
    epochs_run: int
    stopped_early: bool


class EvaluateRequest(BaseModel):
    threshold: float | None = Field(default=None, ge=0, le=1)


class EvaluationResponse(BaseModel):
    precision: float
    recall: float
    f1: float
    auc: float
    confusion: dict[str, int]
    threshold: float


class ThresholdResponse(BaseModel):
    threshold: float
    f1: float


class StoreRequest(BaseModel):
    name: str | None = None


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except SchemaError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


# ── App Factory ─────────────────────────────────────────────────────

def create_app() -> FastAPI:
    settings = ServiceSettings()
    configure_logging(level=settings.log_level, fmt=settings.log_format)

    store = ModelStore(settings.model_artifact_dir)
    session = AttritionSession(settings.pipeline_config(), store, store_name=settings.model_store_name)
    defaults = session.config

    app = FastAPI(title="Employee Attrition API", version="0.1.0")
    app.state.session = session

    @app.middleware("http")
    async def run_id_middleware(request: Request, call_next: Any) -> Response:
        with bound_run_id(request.headers.get("X-Run-ID")) as rid:
            response = await call_next(request)
        response.headers["X-Run-ID"] = rid
        return response

    # ── Health ──────────────────────────────────────────────────────

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "classifier": session.classifier.state.value}

    # ── Dataset ─────────────────────────────────────────────────────

    @app.post("/dataset", response_model=DatasetResponse)
    async def upload_dataset(request: Request) -> DatasetResponse:
        text = (await request.body()).decode("utf-8")
        with _domain_errors():
            dataset = session.load_text(text)
        return DatasetResponse(rows=dataset.n_rows, categorical_columns=list(dataset.categorical_cols))

    @app.get("/dataset/eda")
    def dataset_eda() -> dict[str, Any]:
        with _domain_errors():
            summary = session.eda()
        return {
            "balance": {"positive": summary.positive, "negative": summary.negative, "rate": summary.rate},
            "top_correlations": [{"column": c, "r": r} for c, r in summary.top_correlations],
            "category_rates": {
                col: [{"value": v, "rate": r} for v, r in rates] for col, rates in summary.category_rates.items()
            },
        }

    @app.post("/dataset/prepare", response_model=PrepareResponse)
    def prepare(payload: PrepareRequest) -> PrepareResponse:
        augment = AugmentConfig(
            enable=_pick(payload.augment_enable, defaults.augment.enable),
            target_ratio=_pick(payload.augment_target_ratio, defaults.augment.target_ratio),
            noise_std=_pick(payload.augment_noise_std, defaults.augment.noise_std),
        )
        with _domain_errors():
            prepared = session.prepare(test_fraction=payload.test_fraction, augment=augment)
        return PrepareResponse(
            train_rows=len(prepared.x_train),
            test_rows=len(prepared.x_test),
            features=prepared.n_features,
            feature_order=list(prepared.feature_order),
        )

    @app.get("/dataset/report", response_model=FeatureReportResponse)
    def feature_report() -> FeatureReportResponse:
        with _domain_errors():
            report = session.feature_report()
        return FeatureReportResponse(
            kept=list(report.kept),
            dropped=list(report.dropped),
            created=list(report.created),
            created_descriptions=report.created_descriptions,
        )

    # ── Model ───────────────────────────────────────────────────────

    @app.post("/model/build")
    def build(payload: BuildRequest) -> dict[str, Any]:
        model = ModelConfig(
            units=_pick(payload.units, defaults.model.units),
            layers=_pick(payload.layers, defaults.model.layers),
            learning_rate=_pick(payload.learning_rate, defaults.model.learning_rate),
        )
        with _domain_errors():
            return {"architecture": session.build(model)}

    @app.post("/model/train", response_model=HistoryResponse)
    def train(payload: TrainRequest) -> HistoryResponse:
        fit = FitConfig(
            epochs=_pick(payload.epochs, defaults.fit.epochs),
            batch_size=_pick(payload.batch_size, defaults.fit.batch_size),
            validation_split=_pick(payload.validation_split, defaults.fit.validation_split),
            patience=_pick(payload.patience, defaults.fit.patience),
        )
        with _domain_errors():
            history = session.train(fit)
        return HistoryResponse(
            loss=history.loss,
            val_loss=history.val_loss,
            epochs_run=len(history),
            stopped_early=history.stopped_early,
        )

    @app.post("/model/evaluate", response_model=EvaluationResponse)
    def evaluate(payload: EvaluateRequest) -> EvaluationResponse:
        with _domain_errors():
            result = session.evaluate(threshold=payload.threshold)
        return EvaluationResponse(
            precision=result.precision,
            recall=result.recall,
            f1=result.f1,
            auc=result.auc,
            confusion=result.to_dict()["confusion"],
            threshold=session.threshold,
        )

    @app.post("/model/threshold", response_model=ThresholdResponse)
    def auto_threshold() -> ThresholdResponse:
        with _domain_errors():
            best = session.auto_threshold()
        return ThresholdResponse(threshold=best.threshold, f1=best.f1)

    @app.get("/predictions")
    def predictions() -> list[dict[str, Any]]:
        with _domain_errors():
            return session.predictions().to_dict("records")

    @app.post("/model/save")
    def save_model(payload: StoreRequest) -> dict[str, str]:
        with _domain_errors():
            return {"saved": session.save_model(payload.name)}

    @app.post("/model/load")
    def load_model(payload: StoreRequest) -> dict[str, Any]:
        with _domain_errors():
            return {"architecture": session.load_model(payload.name)}

    @app.post("/reset")
    def reset() -> dict[str, str]:
        with _domain_errors():
            session.reset()
        return {"status": "reset"}

    return app
