"""
Model Training Module
=====================

Handles model training using HistGradientBoostingRegressor on top of the
fitted feature pipeline.

Features:
    - Fixed-size boosted tree ensemble (early stopping disabled)
    - Hyperparameter configuration via config file
    - Training progress logging
"""

import logging
from typing import Dict, Any, Optional
from datetime import datetime

import numpy as np
import pandas as pd
from sklearn.ensemble import HistGradientBoostingRegressor

from .data_loader import LABEL_COLUMN
from .preprocessing import GameSalesPreprocessor

logger = logging.getLogger(__name__)


class GameSalesModel:
    """
    Global sales regressor: feature pipeline plus gradient-boosted trees.

    The preprocessor is fitted together with the regressor so a trained
    model always carries the vocabulary and bounds it was trained with.
    """

    def __init__(
        self,
        n_trees: int = 100,
        min_samples_leaf: int = 5,
        max_leaves: int = 50,
        learning_rate: float = 0.2,
        random_state: Optional[int] = 42
    ):
        """
        Initialize the model with hyperparameters.

        Args:
            n_trees: Number of boosting iterations (trees)
            min_samples_leaf: Minimum samples required in a leaf
            max_leaves: Maximum number of leaves per tree
            learning_rate: Learning rate (shrinkage)
            random_state: Random seed for reproducibility
        """
        self.n_trees = n_trees
        self.min_samples_leaf = min_samples_leaf
        self.max_leaves = max_leaves
        self.learning_rate = learning_rate
        self.random_state = random_state

        self.preprocessor: Optional[GameSalesPreprocessor] = None
        self.regressor: Optional[HistGradientBoostingRegressor] = None
        self.n_features_in_: Optional[int] = None
        self.training_info: Dict[str, Any] = {}
        self._is_fitted = False

    @property
    def hyperparameters(self) -> Dict[str, Any]:
        return {
            'n_trees': self.n_trees,
            'min_samples_leaf': self.min_samples_leaf,
            'max_leaves': self.max_leaves,
            'learning_rate': self.learning_rate,
            'random_state': self.random_state,
        }

    @property
    def is_fitted(self) -> bool:
        return self._is_fitted

    def _create_regressor(self) -> HistGradientBoostingRegressor:
        return HistGradientBoostingRegressor(
            max_iter=self.n_trees,
            min_samples_leaf=self.min_samples_leaf,
            max_leaf_nodes=self.max_leaves,
            learning_rate=self.learning_rate,
            random_state=self.random_state,
            early_stopping=False,
            verbose=0
        )

    def fit(self, df: pd.DataFrame, label: str = LABEL_COLUMN) -> 'GameSalesModel':
        """
        Fit the feature pipeline and the tree ensemble on training rows.

        Args:
            df: Training DataFrame including the label column
            label: Name of the label column

        Returns:
            Self for method chaining
        """
        if label not in df.columns:
            raise ValueError(f"Label column '{label}' not found in training data")
        if df.empty:
            raise ValueError("Cannot train on an empty DataFrame")

        start_time = datetime.now()

        logger.info("=" * 60)
        logger.info("STARTING MODEL TRAINING")
        logger.info("=" * 60)
        logger.info(f"Hyperparameters: {self.hyperparameters}")

        self.preprocessor = GameSalesPreprocessor()
        X = self.preprocessor.fit_transform(df)
        y = df[label].astype(float).values

        logger.info(f"Training data shape: X={X.shape}, y={y.shape}")

        self.regressor = self._create_regressor()
        self.regressor.fit(X, y)
        self.n_features_in_ = X.shape[1]

        end_time = datetime.now()
        training_duration = (end_time - start_time).total_seconds()

        self.training_info = {
            'training_duration_seconds': training_duration,
            'n_samples': int(X.shape[0]),
            'n_features': int(X.shape[1]),
            'label': label,
            'trained_at': end_time.isoformat(),
            'n_iter': int(self.regressor.n_iter_),
            'hyperparameters': self.hyperparameters
        }

        self._is_fitted = True

        logger.info("=" * 60)
        logger.info(f"MODEL TRAINING COMPLETE in {training_duration:.2f} seconds")
        logger.info("=" * 60)

        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """
        Predict global sales for the given rows.

        Args:
            df: DataFrame with the feature columns (label ignored)

        Returns:
            Predictions array of shape (n_samples,)
        """
        if not self._is_fitted:
            raise ValueError("Model must be trained before prediction. Call fit() first.")

        X = self.preprocessor.transform(df)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"Expected {self.n_features_in_} features, but got {X.shape[1]}"
            )

        return self.regressor.predict(X)

    def get_state(self) -> Dict[str, Any]:
        """Serializable state consumed by the model store."""
        if not self._is_fitted:
            raise ValueError("Cannot save untrained model.")

        return {
            'hyperparameters': self.hyperparameters,
            'preprocessor': self.preprocessor.get_state(),
            'regressor': self.regressor,
            'n_features_in_': self.n_features_in_,
            'training_info': self.training_info,
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> 'GameSalesModel':
        """Rebuild a trained model from get_state() output."""
        model = cls(**state['hyperparameters'])
        model.preprocessor = GameSalesPreprocessor.from_state(state['preprocessor'])
        model.regressor = state['regressor']
        model.n_features_in_ = state['n_features_in_']
        model.training_info = state['training_info']
        model._is_fitted = True
        return model


def train_model(
    train_df: pd.DataFrame,
    config: Dict[str, Any]
) -> GameSalesModel:
    """
    Train a model using configuration parameters.

    Args:
        train_df: Training rows including the label
        config: Configuration dictionary (reads the 'model' section)

    Returns:
        Trained GameSalesModel
    """
    model_config = config.get('model', {})

    model = GameSalesModel(
        n_trees=model_config.get('n_trees', 100),
        min_samples_leaf=model_config.get('min_samples_leaf', 5),
        max_leaves=model_config.get('max_leaves', 50),
        learning_rate=model_config.get('learning_rate', 0.2),
        random_state=model_config.get('random_state', 42)
    )

    return model.fit(train_df, label=model_config.get('label', LABEL_COLUMN))


def print_model_summary(model: GameSalesModel) -> None:
    """
    Print a summary of the trained model.

    Args:
        model: Trained model instance
    """
    print("\n" + "=" * 50)
    print("MODEL SUMMARY")
    print("=" * 50)
    print("Model Type: HistGradientBoostingRegressor")
    print(f"Number of input features: {model.n_features_in_}")
    print("\nHyperparameters:")
    for name, value in model.hyperparameters.items():
        print(f"  - {name}: {value}")

    if model.training_info:
        print("\nTraining Info:")
        print(f"  - Duration: {model.training_info.get('training_duration_seconds', 0.0):.2f}s")
        print(f"  - Samples: {model.training_info.get('n_samples', 'N/A')}")
        print(f"  - Trees built: {model.training_info.get('n_iter', 'N/A')}")

    print("=" * 50 + "\n")
