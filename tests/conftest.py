"""Shared fixtures for the game sales test suite."""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from game_sales.data_loader import GAME_SALES_SCHEMA

CSV_HEADER = "Rank,Name,Platform,Year,Genre,Publisher,NA_Sales,EU_Sales,JP_Sales,Other_Sales,Global_Sales"

PLATFORMS = ["PC", "PS4", "Xbox"]
GENRES = ["Action", "Sports", "Puzzle"]
PUBLISHERS = ["Nintendo", "Ubisoft", "EA"]


def make_games(n_samples: int = 200, seed: int = 42) -> pd.DataFrame:
    """
    Synthetic dataset where global sales is linear in NA sales.

    global_sales = 2 * na_sales + 0.5, other regions are small noise.
    """
    rng = np.random.RandomState(seed)
    na_sales = np.round(rng.uniform(0, 10, n_samples), 2)

    return pd.DataFrame({
        "rank": np.arange(1, n_samples + 1),
        "name": [f"Game {i}" for i in range(n_samples)],
        "platform": [PLATFORMS[i % len(PLATFORMS)] for i in range(n_samples)],
        "year": 2000 + rng.randint(0, 20, n_samples),
        "genre": [GENRES[i % len(GENRES)] for i in range(n_samples)],
        "publisher": [PUBLISHERS[(i // 2) % len(PUBLISHERS)] for i in range(n_samples)],
        "na_sales": na_sales,
        "eu_sales": np.round(rng.uniform(0, 0.1, n_samples), 2),
        "jp_sales": np.round(rng.uniform(0, 0.1, n_samples), 2),
        "other_sales": np.round(rng.uniform(0, 0.1, n_samples), 2),
        "global_sales": 2 * na_sales + 0.5,
    }, columns=list(GAME_SALES_SCHEMA))


def write_sales_csv(path: Path, df: pd.DataFrame) -> Path:
    """Write a dataset in the vgsales CSV layout (with header)."""
    out = df.copy()
    out.columns = CSV_HEADER.split(",")
    out.to_csv(path, index=False)
    return path


@pytest.fixture
def games_df():
    return make_games()


@pytest.fixture
def games_csv(tmp_path, games_df):
    return write_sales_csv(tmp_path / "vgsales.csv", games_df)
