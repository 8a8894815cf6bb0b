"""
Model Store
===========

Persists a trained GameSalesModel (feature pipeline, tree ensemble, fitted
vocabulary and bounds) as a single joblib artifact and loads it back.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import joblib

from .data_loader import GAME_SALES_SCHEMA
from .exceptions import CorruptArtifactError
from .model import GameSalesModel

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT_VERSION = 1

_REQUIRED_KEYS = ('format_version', 'schema', 'model')


def _describe_schema(schema: Mapping[str, type]) -> List[Tuple[str, str]]:
    return [(name, kind.__name__) for name, kind in schema.items()]


def save_model(
    model: GameSalesModel,
    destination: str,
    schema: Optional[Mapping[str, type]] = None
) -> Path:
    """
    Save a trained model to a single artifact, overwriting any existing file.

    Args:
        model: Trained model
        destination: Artifact path
        schema: Input schema the model was trained against

    Returns:
        Path of the written artifact
    """
    schema = schema or GAME_SALES_SCHEMA

    artifact = {
        'format_version': ARTIFACT_FORMAT_VERSION,
        'schema': _describe_schema(schema),
        'model': model.get_state(),
    }

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(artifact, destination)

    logger.info(f"Model saved to {destination}")
    return destination


def _check_artifact(artifact: Any, expected_schema: List[Tuple[str, str]], source: Path) -> Dict[str, Any]:
    if not isinstance(artifact, dict):
        raise CorruptArtifactError(
            f"Artifact {source} does not contain a model", path=str(source)
        )

    missing = [key for key in _REQUIRED_KEYS if key not in artifact]
    if missing:
        raise CorruptArtifactError(
            f"Artifact {source} is missing {missing}", path=str(source)
        )

    version = artifact['format_version']
    if version != ARTIFACT_FORMAT_VERSION:
        raise CorruptArtifactError(
            f"Unsupported artifact format version {version} "
            f"(expected {ARTIFACT_FORMAT_VERSION})",
            path=str(source)
        )

    stored_schema = [tuple(entry) for entry in artifact['schema']]
    if stored_schema != expected_schema:
        raise CorruptArtifactError(
            f"Schema mismatch in {source}: artifact has {stored_schema}, "
            f"expected {expected_schema}",
            path=str(source)
        )

    return artifact


def load_model(
    source: str,
    schema: Optional[Mapping[str, type]] = None
) -> GameSalesModel:
    """
    Load a trained model from an artifact written by save_model.

    Args:
        source: Artifact path
        schema: Input schema the caller expects the model to accept

    Returns:
        Trained GameSalesModel

    Raises:
        FileNotFoundError: If the artifact doesn't exist
        CorruptArtifactError: If the artifact is unreadable, truncated or
            built for a different schema
    """
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"Model artifact not found: {source}")

    try:
        artifact = joblib.load(source)
    except Exception as e:
        raise CorruptArtifactError(
            f"Could not read model artifact {source}: {e}", path=str(source)
        ) from e

    artifact = _check_artifact(
        artifact, _describe_schema(schema or GAME_SALES_SCHEMA), source
    )

    try:
        model = GameSalesModel.from_state(artifact['model'])
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CorruptArtifactError(
            f"Model state in {source} is incomplete: {e}", path=str(source)
        ) from e

    logger.info(f"Model loaded from {source}")
    return model
