"""
Prediction Module
=================

Applies a trained (or reloaded) model to new game records.

Features:
    - Single-record prediction from a GameRecord or a plain mapping
    - Batch prediction over a DataFrame
    - Export predictions to CSV
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Union
from datetime import datetime

import numpy as np
import pandas as pd

from .data_loader import GameRecord, LABEL_COLUMN
from .model import GameSalesModel

logger = logging.getLogger(__name__)

SAMPLE_GAME = GameRecord(
    rank=5,
    name="Sample Game",
    platform="PS4",
    year=2022,
    genre="Action",
    publisher="Sample Publisher",
    na_sales=41.49,
    eu_sales=29.02,
    jp_sales=3.77,
    other_sales=8.46
)


def _as_record(record: Union[GameRecord, Mapping[str, Any]]) -> GameRecord:
    if isinstance(record, GameRecord):
        return record
    return GameRecord.from_row(record)


def predict_sales(
    model: GameSalesModel,
    record: Union[GameRecord, Mapping[str, Any]]
) -> float:
    """
    Predict global sales for one game.

    Args:
        model: Trained model
        record: GameRecord or mapping of field names; the label is ignored

    Returns:
        Predicted global sales (millions)
    """
    record = _as_record(record)
    frame = record.to_frame().drop(columns=[LABEL_COLUMN])
    prediction = float(model.predict(frame)[0])

    logger.info(f"Predicted global sales for '{record.name}': {prediction:.4f}")
    return prediction


def predict_batch(model: GameSalesModel, df: pd.DataFrame) -> np.ndarray:
    """Predict global sales for every row of a DataFrame."""
    predictions = model.predict(df)
    logger.info(f"Generated {len(predictions)} predictions")
    return predictions


def export_predictions(
    df: pd.DataFrame,
    predictions: np.ndarray,
    output_dir: str,
    include_timestamp: bool = True
) -> str:
    """
    Export rows with their predicted global sales to CSV.

    Args:
        df: Input rows
        predictions: Predicted values aligned with df
        output_dir: Directory to save the file
        include_timestamp: Whether to add timestamp to filename

    Returns:
        Path to the saved file
    """
    if len(df) != len(predictions):
        raise ValueError(
            f"Got {len(predictions)} predictions for {len(df)} rows"
        )

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    out = df.copy()
    out["predicted_global_sales"] = predictions

    if include_timestamp:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"predictions_{timestamp}.csv"
    else:
        filename = "predictions.csv"

    filepath = output_dir / filename
    out.to_csv(filepath, index=False)

    logger.info(f"Predictions exported to {filepath}")
    return str(filepath)


def print_prediction_result(record: GameRecord, prediction: float) -> None:
    """Print one prediction the way the training run reports it."""
    print(
        f"\nPrediction for new data: Name={record.name}, Platform={record.platform}, "
        f"Year={record.year}, Genre={record.genre}, Publisher={record.publisher}"
    )
    print(f"Predicted Global Sales: {prediction}")
