from __future__ import annotations

import csv
import logging
from pathlib import Path

import pandas as pd

from attrition.config import BASE_NUMERIC_COLS, CATEGORICAL_COLS, DROPPED_COLS, LABEL_COL, META_COLS
from attrition.data_models import LoadedDataset
from attrition.errors import SchemaError

logger = logging.getLogger(__name__)


def _split_lines(text: str) -> list[str]:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return [line for line in normalized.split("\n") if line]


def parse_csv_text(text: str) -> LoadedDataset:
    lines = _split_lines(text)
    if len(lines) < 2:
        raise SchemaError("CSV has no data.")

    parsed = csv.reader(lines)
    headers = tuple(h.strip() for h in next(parsed))
    if LABEL_COL not in headers:
        raise SchemaError(f"Missing required column: {LABEL_COL}")

    categorical = tuple(c for c in CATEGORICAL_COLS if c in headers)
    allowed = set(BASE_NUMERIC_COLS) | set(categorical) | {LABEL_COL} | set(META_COLS) | set(DROPPED_COLS)
    keep_positions = [(j, h) for j, h in enumerate(headers) if h in allowed]

    rows = []
    skipped = 0
    for parts in parsed:
        if len(parts) != len(headers):
            skipped += 1
            continue
        rows.append({h: parts[j].strip() for j, h in keep_positions})

    if not rows:
        raise SchemaError("CSV has no data.")

    frame = pd.DataFrame(rows, columns=[h for _, h in keep_positions], dtype=object)
    if skipped:
        logger.info("Skipped %d malformed rows", skipped)
    logger.info(
        "Loaded %d rows (categorical=%d, numeric=%d, dropped=%d).",
        len(frame),
        len(categorical),
        len(BASE_NUMERIC_COLS),
        len(DROPPED_COLS),
    )
    return LoadedDataset(headers=headers, frame=frame, categorical_cols=categorical)


def load_csv(path: str | Path) -> LoadedDataset:
    return parse_csv_text(Path(path).read_text(encoding="utf-8"))
