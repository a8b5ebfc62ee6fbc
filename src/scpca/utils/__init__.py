"""Utility modules for scpca."""

from .logging_config import get_logger, setup_logging
from .matrix_utils import as_data_matrix, as_value_list
from .parallel import ordered_map

__all__ = [
    "get_logger",
    "setup_logging",
    "as_data_matrix",
    "as_value_list",
    "ordered_map",
]
