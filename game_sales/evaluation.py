"""
Model Evaluation Module
=======================

Provides evaluation metrics and diagnostic plots for the sales regressor.

Features:
    - MAE, RMSE, R² calculation
    - Actual vs Predicted plot
    - Residual distribution plot
    - Metrics JSON export
"""

import logging
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Any, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score

from .data_loader import LABEL_COLUMN
from .model import GameSalesModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionMetrics:
    """Aggregate error metrics of one evaluation."""

    mae: float
    rmse: float
    r2: float
    n_samples: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> RegressionMetrics:
    """
    Calculate MAE, RMSE and R² between labels and predictions.

    Args:
        y_true: Ground truth values of shape (n_samples,)
        y_pred: Predicted values of shape (n_samples,)

    Returns:
        RegressionMetrics
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: y_true {y_true.shape} vs y_pred {y_pred.shape}")
    if len(y_true) == 0:
        raise ValueError("Cannot compute metrics on zero samples")

    return RegressionMetrics(
        mae=float(mean_absolute_error(y_true, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        r2=float(r2_score(y_true, y_pred)),
        n_samples=int(len(y_true))
    )


def plot_actual_vs_predicted(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Scatter of actual vs predicted global sales with the identity line.

    Args:
        y_true: Ground truth values
        y_pred: Predicted values
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=(7, 6))

    ax.scatter(y_true, y_pred, alpha=0.5, s=20)

    min_val = min(np.min(y_true), np.min(y_pred))
    max_val = max(np.max(y_true), np.max(y_pred))
    ax.plot([min_val, max_val], [min_val, max_val], 'r--', linewidth=2, label='Perfect')

    r2 = r2_score(y_true, y_pred)
    rmse = np.sqrt(mean_squared_error(y_true, y_pred))

    ax.set_xlabel('Actual global sales (millions)')
    ax.set_ylabel('Predicted global sales (millions)')
    ax.set_title(f'Actual vs Predicted\nR²={r2:.4f}, RMSE={rmse:.4f}', fontweight='bold')
    ax.legend(loc='upper left', fontsize=8)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Actual vs Predicted plot saved to {save_path}")

    return fig


def plot_residuals(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Residual distribution plot for model diagnostics.

    Args:
        y_true: Ground truth values
        y_pred: Predicted values
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    residuals = np.asarray(y_true, dtype=float) - np.asarray(y_pred, dtype=float)

    fig, ax = plt.subplots(figsize=(8, 5))

    sns.histplot(residuals, kde=len(residuals) > 1, ax=ax, bins=50, alpha=0.7)
    ax.axvline(0, color='red', linestyle='--', linewidth=2, label='Zero')
    ax.axvline(np.mean(residuals), color='green', linestyle='--',
               linewidth=2, label=f'Mean: {np.mean(residuals):.4f}')

    ax.set_xlabel('Residual (Actual - Predicted)')
    ax.set_ylabel('Frequency')
    ax.set_title(f'Residuals (Std: {np.std(residuals):.4f})', fontweight='bold')
    ax.legend(fontsize=8)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Residuals plot saved to {save_path}")

    return fig


def evaluate_model(
    model: GameSalesModel,
    test_df: pd.DataFrame,
    label: str = LABEL_COLUMN,
    output_dir: Optional[str] = None,
    make_plots: bool = False
) -> Dict[str, Any]:
    """
    Evaluate a trained model on held-out rows.

    Args:
        model: Trained model
        test_df: Test rows including the label column
        label: Name of the label column
        output_dir: Directory for metrics JSON and figures (optional)
        make_plots: Whether to render diagnostic figures into output_dir

    Returns:
        Dictionary containing metrics, predictions and file paths
    """
    logger.info("=" * 60)
    logger.info("STARTING MODEL EVALUATION")
    logger.info("=" * 60)

    y_true = test_df[label].astype(float).values
    y_pred = model.predict(test_df)
    metrics = calculate_metrics(y_true, y_pred)

    result = {
        'metrics': metrics,
        'predictions': y_pred,
        'figures': [],
        'metrics_file': None
    }

    if output_dir is not None:
        output_dir = Path(output_dir)
        metrics_dir = output_dir / "metrics"
        metrics_dir.mkdir(parents=True, exist_ok=True)

        metrics_file = metrics_dir / "evaluation_metrics.json"
        with open(metrics_file, 'w') as f:
            json.dump(metrics.to_dict(), f, indent=2)
        logger.info(f"Metrics saved to {metrics_file}")
        result['metrics_file'] = str(metrics_file)

        if make_plots:
            figures_dir = output_dir / "figures"
            figures_dir.mkdir(parents=True, exist_ok=True)

            plot_actual_vs_predicted(
                y_true, y_pred,
                save_path=str(figures_dir / "eval_actual_vs_predicted.png")
            )
            plot_residuals(
                y_true, y_pred,
                save_path=str(figures_dir / "eval_residuals.png")
            )
            plt.close('all')
            result['figures'] = ["eval_actual_vs_predicted.png", "eval_residuals.png"]

    logger.info("=" * 60)
    logger.info("EVALUATION COMPLETE")
    logger.info(f"  MAE: {metrics.mae:.6f}")
    logger.info(f"  RMSE: {metrics.rmse:.6f}")
    logger.info(f"  R²: {metrics.r2:.6f}")
    logger.info("=" * 60)

    return result


def print_evaluation_report(metrics: RegressionMetrics, r2_threshold: float = 0.7) -> None:
    """
    Print the evaluation metrics and an acceptance verdict.

    Args:
        metrics: Metrics from calculate_metrics
        r2_threshold: Minimum R² for the model to be considered usable
    """
    print("\n" + "=" * 70)
    print("Model Evaluation Metrics:")
    print("=" * 70)
    print(f"Mean Absolute Error (MAE): {metrics.mae}")
    print(f"Root Mean Squared Error (RMSE): {metrics.rmse}")
    print(f"R-squared (R2): {metrics.r2}")
    print(f"Samples evaluated: {metrics.n_samples}")
    print()

    if metrics.r2 >= r2_threshold:
        print("The model performs well and can be used for prediction on this type of data.")
    else:
        print("The model may not be accurate enough for reliable predictions. "
              "Consider improving the model.")

    print("=" * 70 + "\n")
