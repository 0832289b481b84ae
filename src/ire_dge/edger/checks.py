"""
Input validation utilities for edgeR functions.

Provides centralized checks for SummarizedExperiment variants and EdgeRModel inputs.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import pandas as pd


def check_se(se: Any, name: str = "se") -> None:
    """Check that input is a SummarizedExperiment-like object.

    Accepts any object with ``assays`` and ``assay_names`` attributes
    (duck typing for SE, RSE, SCE).
    """
    for attr in ("assays", "assay_names"):
        if not hasattr(se, attr):
            raise TypeError(
                f"Expected `{name}` to be a SummarizedExperiment-like object, "
                f"got {type(se).__name__} which lacks '{attr}'"
            )


def check_r_assay(se: Any, assay: str) -> None:
    """Check that the specified assay is R-initialized (RMatrixAdapter).

    Raises:
        KeyError: If assay doesn't exist.
        TypeError: If assay is not R-initialized.
    """
    from ..r_init import check_r_initialized
    check_r_initialized(se, assay)


def check_assay_exists(se: Any, assay: str) -> None:
    """Check that the specified assay exists in the SummarizedExperiment."""
    if assay not in se.assay_names:
        available = list(se.assay_names)
        raise KeyError(
            f"Assay '{assay}' not found. Available assays: {available}"
        )


def check_design(design: Any, n_samples: Optional[int] = None) -> None:
    """Check that design is a valid pandas DataFrame."""
    if not isinstance(design, pd.DataFrame):
        raise TypeError(
            f"Expected `design` to be a pandas DataFrame, "
            f"got {type(design).__name__}"
        )
    if n_samples is not None and len(design) != n_samples:
        raise ValueError(
            f"Design matrix has {len(design)} rows but expected {n_samples} samples"
        )


def check_edger_model(model: Any) -> None:
    """Check that input is a valid EdgeRModel with a fit object."""
    from .glm_fit import EdgeRModel
    if not isinstance(model, EdgeRModel):
        raise TypeError(
            f"Expected an EdgeRModel, got {type(model).__name__}"
        )
    if model.fit is None:
        raise ValueError("EdgeRModel.fit is None - model has not been fitted")


def check_coef_or_contrast(
    coef: Optional[Any],
    contrast: Optional[Sequence],
) -> None:
    """Check that coef and contrast are not both given."""
    if coef is not None and contrast is not None:
        raise ValueError("Specify either `coef` or `contrast`, not both")


def n_samples(se: Any) -> int:
    return len(se.column_names) if se.column_names is not None else se.shape[1]
