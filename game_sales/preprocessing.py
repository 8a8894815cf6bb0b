"""
Data Preprocessing Module
=========================

Handles train/test splitting and the fixed feature encoding pipeline.

The feature vector is built in this order:
    1. year (coerced to float)
    2. one-hot indicators for platform, genre, publisher
    3. min-max normalized na_sales, eu_sales, jp_sales, other_sales

Encoder vocabulary and normalization bounds are fitted on the training set
only and reused unchanged at inference. Unseen categories encode as all-zero
blocks; values outside the fitted range extrapolate beyond [0, 1].
"""

import logging
import warnings
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import MinMaxScaler, OneHotEncoder

from .data_loader import CATEGORICAL_COLUMNS, REGIONAL_SALES_COLUMNS
from .exceptions import SchemaError, UnseenCategoryWarning

logger = logging.getLogger(__name__)

YEAR_COLUMN = "year"


def split_dataset(
    df: pd.DataFrame,
    test_fraction: float = 0.2,
    random_state: Optional[int] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Shuffle and split the dataset into train and test sets.

    Args:
        df: Loaded dataset
        test_fraction: Fraction of rows for the test set (0 < f < 1)
        random_state: Seed for a reproducible split; None varies per run

    Returns:
        Tuple of (train_df, test_df), disjoint and covering every row
    """
    if not 0 < test_fraction < 1:
        raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")

    train_df, test_df = train_test_split(
        df,
        test_size=test_fraction,
        random_state=random_state,
        shuffle=True
    )

    logger.info(
        f"Train/Test split: {len(train_df)} train samples, {len(test_df)} test samples"
    )

    return train_df, test_df


class GameSalesPreprocessor:
    """
    Feature pipeline for the game sales dataset.

    Captures the one-hot vocabulary and min-max bounds at fit time so the
    exact same encoding can be replayed on new records.
    """

    def __init__(
        self,
        categorical_columns: Optional[List[str]] = None,
        numeric_columns: Optional[List[str]] = None
    ):
        """
        Initialize the preprocessor.

        Args:
            categorical_columns: Columns to one-hot encode
            numeric_columns: Columns to min-max normalize
        """
        self.categorical_columns = list(categorical_columns or CATEGORICAL_COLUMNS)
        self.numeric_columns = list(numeric_columns or REGIONAL_SALES_COLUMNS)

        self.encoder: Optional[OneHotEncoder] = None
        self.scaler: Optional[MinMaxScaler] = None
        self._is_fitted = False

    @property
    def input_columns(self) -> List[str]:
        return [YEAR_COLUMN] + self.categorical_columns + self.numeric_columns

    def _check_columns(self, df: pd.DataFrame) -> None:
        missing = [c for c in self.input_columns if c not in df.columns]
        if missing:
            raise SchemaError(f"Missing feature columns: {missing}")

    def fit(self, df: pd.DataFrame) -> 'GameSalesPreprocessor':
        """
        Learn the category vocabulary and normalization bounds.

        Args:
            df: Training DataFrame

        Returns:
            Self for method chaining
        """
        self._check_columns(df)
        if df.empty:
            raise ValueError("Cannot fit preprocessor on an empty DataFrame")

        self.encoder = OneHotEncoder(handle_unknown="ignore", sparse_output=False)
        self.encoder.fit(df[self.categorical_columns].astype(str).to_numpy(dtype=object))

        self.scaler = MinMaxScaler(feature_range=(0, 1), clip=False)
        self.scaler.fit(df[self.numeric_columns].astype(float).values)

        self._is_fitted = True

        logger.info(
            "Fitted preprocessor: "
            + ", ".join(f"{col}={len(cats)} categories" for col, cats in self.vocabulary.items())
        )
        return self

    def _warn_unseen(self, categories: pd.DataFrame) -> None:
        for col, known in self.vocabulary.items():
            unseen = sorted(set(categories[col]) - set(known))
            if unseen:
                message = (
                    f"Unseen {col} values {unseen} encoded as all-zero vectors"
                )
                logger.warning(message)
                warnings.warn(message, UnseenCategoryWarning)

    def transform(self, df: pd.DataFrame) -> np.ndarray:
        """
        Transform data using fitted parameters.

        Args:
            df: DataFrame to transform

        Returns:
            Feature matrix of shape (n_samples, n_features)
        """
        if not self._is_fitted:
            raise ValueError("Preprocessor must be fitted before transform. Call fit() first.")

        self._check_columns(df)

        year = pd.to_numeric(df[YEAR_COLUMN], errors="raise").astype(float).values.reshape(-1, 1)

        categories = df[self.categorical_columns].astype(str)
        self._warn_unseen(categories)
        with warnings.catch_warnings():
            # sklearn repeats the unknown-category notice as a plain UserWarning
            warnings.filterwarnings("ignore", message="Found unknown categories")
            one_hot = self.encoder.transform(categories.to_numpy(dtype=object))

        scaled = self.scaler.transform(df[self.numeric_columns].astype(float).values)

        return np.hstack([year, one_hot, scaled])

    def fit_transform(self, df: pd.DataFrame) -> np.ndarray:
        """Fit and transform in one step."""
        self.fit(df)
        return self.transform(df)

    @property
    def vocabulary(self) -> Dict[str, List[str]]:
        """Known categories per categorical column, in encoding order."""
        if not self._is_fitted:
            raise ValueError("Preprocessor must be fitted first.")
        return {
            col: [str(c) for c in cats]
            for col, cats in zip(self.categorical_columns, self.encoder.categories_)
        }

    @property
    def bounds(self) -> Dict[str, Tuple[float, float]]:
        """Fitted (min, max) per normalized column."""
        if not self._is_fitted:
            raise ValueError("Preprocessor must be fitted first.")
        return {
            col: (float(lo), float(hi))
            for col, lo, hi in zip(
                self.numeric_columns, self.scaler.data_min_, self.scaler.data_max_
            )
        }

    def get_feature_names(self) -> List[str]:
        """
        Feature names in concatenation order.

        Returns:
            List like ['year', 'platform_PS4', ..., 'other_sales']
        """
        if not self._is_fitted:
            raise ValueError("Preprocessor must be fitted first.")

        names = [YEAR_COLUMN]
        for col, cats in self.vocabulary.items():
            names.extend(f"{col}_{cat}" for cat in cats)
        names.extend(self.numeric_columns)
        return names

    def get_state(self) -> Dict[str, Any]:
        """Everything needed to replay the fitted transforms."""
        if not self._is_fitted:
            raise ValueError("Cannot export state of an unfitted preprocessor.")

        return {
            'categorical_columns': self.categorical_columns,
            'numeric_columns': self.numeric_columns,
            'encoder': self.encoder,
            'scaler': self.scaler,
            'vocabulary': self.vocabulary,
            'bounds': self.bounds,
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> 'GameSalesPreprocessor':
        """
        Rebuild a fitted preprocessor from get_state() output.

        The stored vocabulary and bounds must agree with the stored encoder
        and scaler.
        """
        preprocessor = cls(
            categorical_columns=state['categorical_columns'],
            numeric_columns=state['numeric_columns']
        )
        preprocessor.encoder = state['encoder']
        preprocessor.scaler = state['scaler']
        preprocessor._is_fitted = True

        if preprocessor.vocabulary != state['vocabulary']:
            raise ValueError("Stored vocabulary does not match the stored encoder")
        if preprocessor.bounds != {k: tuple(v) for k, v in state['bounds'].items()}:
            raise ValueError("Stored bounds do not match the stored scaler")

        return preprocessor


def print_preprocessing_summary(
    preprocessor: GameSalesPreprocessor,
    train_df: pd.DataFrame,
    test_df: pd.DataFrame
) -> None:
    """Print a summary of the split and the fitted encoding."""
    print("\n" + "=" * 50)
    print("PREPROCESSING SUMMARY")
    print("=" * 50)
    print(f"Training samples: {len(train_df)}")
    print(f"Test samples: {len(test_df)}")
    print(f"Features per sample: {len(preprocessor.get_feature_names())}")
    print("\nVocabulary sizes:")
    for col, cats in preprocessor.vocabulary.items():
        print(f"  - {col}: {len(cats)}")
    print("\nNormalization bounds:")
    for col, (lo, hi) in preprocessor.bounds.items():
        print(f"  - {col}: [{lo:.4f}, {hi:.4f}]")
    print("=" * 50 + "\n")
