"""
Input coercion for data matrices and hyperparameter sequences.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Union

import numpy as np
import pandas as pd

from ..exceptions import DimensionMismatch

Array2D = np.ndarray
MatrixIn = Union[np.ndarray, pd.DataFrame, Sequence[Sequence[float]]]


def as_data_matrix(data: MatrixIn, name: str = "data") -> Array2D:
    """
    Convert *data* into a float64 (n_observations, n_variables) array.

    Accepts:
    - np.ndarray of shape (n, p)
    - pandas.DataFrame (values are used, index and columns are dropped)
    - nested lists of numbers

    The returned array is always a fresh copy, so callers may centre or
    scale it in place without touching the caller's data.

    Raises:
        DimensionMismatch: If the input is not two-dimensional
        ValueError: If the input contains NaN or infinite values
    """
    if isinstance(data, pd.DataFrame):
        X = data.to_numpy(dtype=np.float64, copy=True)
    else:
        X = np.array(data, dtype=np.float64, copy=True)

    if X.ndim != 2:
        raise DimensionMismatch(f"{name} must be 2-D (observations x variables); got shape {X.shape}")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or infinite values")
    return X


def as_value_list(values: Iterable[float], name: str) -> List[float]:
    """
    Validate a contrast or penalty sequence and return it sorted ascending.

    Raises:
        ValueError: If the sequence is empty, holds negative, non-finite or
            duplicate values
    """
    vals = [float(v) for v in values]
    if not vals:
        raise ValueError(f"{name} must contain at least one value")
    arr = np.asarray(vals)
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must be finite; got {vals}")
    if np.any(arr < 0):
        raise ValueError(f"{name} must be non-negative; got {vals}")
    if len(set(vals)) != len(vals):
        raise ValueError(f"{name} must not contain duplicates; got {vals}")
    return sorted(vals)
