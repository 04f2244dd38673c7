from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from attrition.config import SPLIT_SEED, AugmentConfig, FitConfig, ModelConfig, PipelineConfig


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", protected_namespaces=()
    )

    model_artifact_dir: str = Field(default="./artifacts", alias="MODEL_ARTIFACT_DIR")
    model_store_name: str = Field(default="attrition-gru", alias="MODEL_STORE_NAME")

    # Data preparation
    test_fraction: float = Field(default=0.2, alias="TEST_FRACTION")
    augment_enable: bool = Field(default=False, alias="AUGMENT_ENABLE")
    augment_target_ratio: float = Field(default=0.5, alias="AUGMENT_TARGET_RATIO")
    augment_noise_std: float = Field(default=0.05, alias="AUGMENT_NOISE_STD")
    split_seed: int = Field(default=SPLIT_SEED, alias="SPLIT_SEED")

    # Model and training
    model_units: int = Field(default=128, alias="MODEL_UNITS")
    model_layers: int = Field(default=1, alias="MODEL_LAYERS")
    learning_rate: float = Field(default=1e-3, alias="LEARNING_RATE")
    epochs: int = Field(default=45, alias="EPOCHS")
    batch_size: int = Field(default=16, alias="BATCH_SIZE")
    validation_split: float = Field(default=0.2, alias="VALIDATION_SPLIT")
    patience: int = Field(default=6, alias="PATIENCE")
    decision_threshold: float = Field(default=0.5, alias="DECISION_THRESHOLD")
    torch_seed: int | None = Field(default=None, alias="TORCH_SEED")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            test_fraction=self.test_fraction,
            augment=AugmentConfig(
                enable=self.augment_enable,
                target_ratio=self.augment_target_ratio,
                noise_std=self.augment_noise_std,
            ),
            model=ModelConfig(
                units=self.model_units,
                layers=self.model_layers,
                learning_rate=self.learning_rate,
            ),
            fit=FitConfig(
                epochs=self.epochs,
                batch_size=self.batch_size,
                validation_split=self.validation_split,
                patience=self.patience,
            ),
            threshold=self.decision_threshold,
            split_seed=self.split_seed,
            torch_seed=self.torch_seed,
        ).clamped()
