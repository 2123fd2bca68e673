"""Utility functions for the analysis pipeline."""

import hashlib
import json
from typing import Any, Dict


def stable_hash(key: str, n_bytes: int = 4) -> int:
    """Map a string to a non-negative integer that is stable across runs.

    Python's built-in hash() is salted per process, so it cannot be used to
    derive reproducible seeds.

    Parameters
    ----------
    key : str
        Text to hash.
    n_bytes : int, default=4
        Number of digest bytes kept.

    Returns
    -------
    value : int
        Integer in [0, 256 ** n_bytes).
    """
    digest = hashlib.sha256(key.encode()).digest()
    return int.from_bytes(digest[:n_bytes], 'big')


def compute_model_hash(model_name: str, hyperparameters: Dict[str, Any] = None) -> str:
    """Compute a short hash of a model configuration for log correlation.

    Parameters
    ----------
    model_name : str
        Classifier name.
    hyperparameters : dict, optional
        Constructor arguments and selected tuning values.

    Returns
    -------
    hash_str : str
        First 16 hex characters of the SHA256 of the configuration.
    """
    if hyperparameters is None:
        hyperparameters = {}

    config_str = json.dumps({
        'classifier': model_name,
        'hyperparameters': {k: repr(v) for k, v in hyperparameters.items()}
    }, sort_keys=True)

    return hashlib.sha256(config_str.encode()).hexdigest()[:16]
