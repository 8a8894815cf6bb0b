"""
Video Game Sales Predictor
==========================

A machine learning pipeline that predicts a game's global sales from its
platform, release year, genre, publisher and regional sales.

Modules:
    - data_loader: CSV ingestion against a fixed schema, config loading
    - preprocessing: Train/test split and feature encoding pipeline
    - model: Gradient-boosted tree training
    - evaluation: MAE / RMSE / R² and diagnostic plots
    - model_store: Single-file model persistence
    - prediction: Inference on new records
"""

__version__ = "1.0.0"
