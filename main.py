#!/usr/bin/env python3
"""
Video Game Sales Predictor - Main Pipeline
==========================================

Orchestrates the complete ML pipeline for global sales regression.

Phases:
    1. Loading - Read and validate the sales CSV
    2. Training - Split, encode features, fit the boosted tree ensemble
    3. Evaluation - MAE, RMSE and R² on the held-out split
    4. Persistence - Save the model artifact and load it back
    5. Prediction - Score one sample game with the reloaded model

Usage:
    # Run complete pipeline
    python main.py --data data/raw/vgsales.csv

    # Train, evaluate and save only
    python main.py --data data/raw/vgsales.csv --phase train

    # Predict with a saved model
    python main.py --phase predict --model models/game_sales_model.joblib \\
        --example '{"rank": 1, "name": "X", "platform": "PC", "year": 2015, ...}'
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional

import pandas as pd

from game_sales.data_loader import (
    GameRecord, load_config, load_data, validate_data, print_data_summary
)
from game_sales.preprocessing import split_dataset, print_preprocessing_summary
from game_sales.model import GameSalesModel, train_model, print_model_summary
from game_sales.evaluation import evaluate_model, print_evaluation_report
from game_sales.model_store import save_model, load_model
from game_sales.prediction import SAMPLE_GAME, predict_sales, print_prediction_result

DEFAULT_MODEL_PATH = 'models/game_sales_model.joblib'


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging for the pipeline."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file.format(timestamp=datetime.now().strftime("%Y%m%d_%H%M%S")))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def sample_record(config: Dict[str, Any]) -> GameRecord:
    """Sample game from the 'sample' config section, or the built-in one."""
    sample = config.get('sample')
    if not sample:
        return SAMPLE_GAME
    return GameRecord.from_row(sample)


def run_loading(data_path: str, config: Dict[str, Any]) -> pd.DataFrame:
    """
    Execute Phase 1: load and validate the dataset.

    Args:
        data_path: Path to input CSV file
        config: Configuration dictionary

    Returns:
        Loaded dataset
    """
    print("\n" + "=" * 70)
    print("PHASE 1: LOADING DATA")
    print("=" * 70)

    data_config = config.get('data', {})
    df = load_data(
        data_path,
        delimiter=data_config.get('delimiter', ','),
        has_header=data_config.get('has_header', True)
    )
    print_data_summary(df)

    is_valid, _ = validate_data(df, strict=False)
    if not is_valid:
        print("⚠️  Data validation warnings detected. Proceeding anyway...")

    return df


def run_training(df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Execute Phases 2-3: split, train and evaluate.

    Args:
        df: Loaded dataset
        config: Configuration dictionary

    Returns:
        Dictionary with the trained model, the split and the evaluation result
    """
    print("\n" + "=" * 70)
    print("PHASE 2: TRAINING")
    print("=" * 70)

    split_config = config.get('split', {})
    train_df, test_df = split_dataset(
        df,
        test_fraction=split_config.get('test_fraction', 0.2),
        random_state=split_config.get('random_state')
    )

    model = train_model(train_df, config)
    print_preprocessing_summary(model.preprocessor, train_df, test_df)
    print_model_summary(model)

    print("\n" + "=" * 70)
    print("PHASE 3: EVALUATION")
    print("=" * 70)

    eval_config = config.get('evaluation', {})
    output_config = config.get('output', {})
    eval_result = evaluate_model(
        model,
        test_df,
        output_dir=output_config.get('reports_path'),
        make_plots=eval_config.get('make_plots', False)
    )
    print_evaluation_report(
        eval_result['metrics'],
        r2_threshold=eval_config.get('r2_threshold', 0.7)
    )

    return {
        'model': model,
        'train_df': train_df,
        'test_df': test_df,
        'evaluation': eval_result
    }


def run_prediction(
    model: GameSalesModel,
    record: GameRecord
) -> float:
    """
    Execute Phase 5: score one game.

    Args:
        model: Trained or reloaded model
        record: Game to score

    Returns:
        Predicted global sales
    """
    print("\n" + "=" * 70)
    print("PHASE 5: PREDICTION")
    print("=" * 70)

    prediction = predict_sales(model, record)
    print_prediction_result(record, prediction)
    return prediction


def run_full_pipeline(
    data_path: str,
    config: Dict[str, Any],
    model_path: str,
    record: Optional[GameRecord] = None
) -> Dict[str, Any]:
    """
    Execute the complete pipeline: train, evaluate, save, reload, predict.

    Args:
        data_path: Path to input CSV file
        config: Configuration dictionary
        model_path: Where to write the model artifact
        record: Game to score after reloading (defaults to the config sample)

    Returns:
        Dictionary containing all phase results
    """
    print("\n" + "=" * 70)
    print("GAME SALES PREDICTION PIPELINE")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    df = run_loading(data_path, config)
    results = run_training(df, config)

    print("\n" + "=" * 70)
    print("PHASE 4: PERSISTENCE")
    print("=" * 70)

    save_model(results['model'], model_path)
    loaded_model = load_model(model_path)
    print(f"Model saved to and reloaded from: {model_path}")

    results['model_path'] = model_path
    results['prediction'] = run_prediction(loaded_model, record or sample_record(config))

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"  • Input data: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"  • Model R²: {results['evaluation']['metrics'].r2:.4f}")
    print(f"  • Model artifact: {model_path}")
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70 + "\n")

    return results


def run_single_phase(
    phase: str,
    data_path: Optional[str],
    config: Dict[str, Any],
    model_path: str,
    record: Optional[GameRecord] = None
) -> Dict[str, Any]:
    """
    Execute a single phase of the pipeline.

    Args:
        phase: Phase to run ('train', 'predict')
        data_path: Path to input CSV file (train only)
        config: Configuration dictionary
        model_path: Model artifact path (written by train, read by predict)
        record: Game to score (predict only)

    Returns:
        Phase result dictionary
    """
    if phase == 'train':
        df = run_loading(data_path, config)
        results = run_training(df, config)
        save_model(results['model'], model_path)
        results['model_path'] = model_path
        return results

    elif phase == 'predict':
        model = load_model(model_path)
        return {'prediction': run_prediction(model, record or sample_record(config))}

    else:
        raise ValueError(f"Unknown phase: {phase}. Choose from: train, predict, all")


def main(argv=None):
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Video game global sales prediction pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --data data/raw/vgsales.csv
  python main.py --data data/raw/vgsales.csv --phase train
  python main.py --phase predict --model models/game_sales_model.joblib
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        default=None,
        help='Path to the input CSV file (default: data.path from config)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--phase', '-p',
        type=str,
        choices=['train', 'predict', 'all'],
        default='all',
        help='Phase to run (default: all)'
    )

    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='Model artifact path (default: output.model_path from config)'
    )

    parser.add_argument(
        '--example', '-e',
        type=str,
        default=None,
        help='JSON object describing a game to predict'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        return 1

    try:
        config = load_config(args.config)
        log_config = config.get('logging', {})
        setup_logging(
            'DEBUG' if args.verbose else log_config.get('level', 'INFO'),
            log_config.get('log_file')
        )

        data_path = args.data or config.get('data', {}).get('path', 'data/raw/vgsales.csv')
        model_path = args.model or config.get('output', {}).get('model_path', DEFAULT_MODEL_PATH)
        record = GameRecord.from_row(json.loads(args.example)) if args.example else None

        if args.phase == 'all':
            run_full_pipeline(data_path, config, model_path, record)
        else:
            run_single_phase(args.phase, data_path, config, model_path, record)

        return 0

    except Exception as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
