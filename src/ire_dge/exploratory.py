"""
Exploratory analysis of normalized expression: logCPM and PCA.

Both steps read the library sizes and TMM factors stored on the experiment by
``edger.calc_norm_factors``; PCA is computed by R's ``stats::prcomp`` on the
samples × genes logCPM matrix, centred and unscaled.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Optional
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class PCAResult:
    """Principal components of the samples.

    Attributes:
        scores: samples × PCs DataFrame (columns ``PC1``, ``PC2``, ...).
        variance_explained: Fraction of total variance per PC.
        loadings: genes × PCs rotation matrix.
    """
    scores: pd.DataFrame
    variance_explained: pd.Series
    loadings: pd.DataFrame

    def axis_label(self, pc: str) -> str:
        return f"{pc} ({self.variance_explained[pc] * 100:.1f}%)"


def log_cpm(se: Any, assay: str = "counts", prior_count: float = 2.0) -> pd.DataFrame:
    """
    logCPM values on normalized library sizes as a genes × samples DataFrame.

    Example:
        >>> se = edger.calc_norm_factors(se)
        >>> expr = log_cpm(se)
    """
    from . import edger

    with_log = edger.cpm(se, assay=assay, log=True, prior_count=prior_count)
    values = np.asarray(with_log.assays["logcpm"])
    return pd.DataFrame(
        values,
        index=[str(g) for g in se.row_names],
        columns=[str(s) for s in se.column_names],
    )


def pca(log_expr: pd.DataFrame, n_components: Optional[int] = None) -> PCAResult:
    """
    Principal component analysis of samples with ``stats::prcomp``.

    Args:
        log_expr: genes × samples log-expression table.
        n_components: Number of components to keep. Default: all.

    Returns:
        PCAResult. ``variance_explained`` is computed over all components,
        so it sums to 1 only when no components are dropped.

    Raises:
        ValueError: If fewer than two samples or ``n_components`` < 1.
    """
    from .edger.utils import _prep_edger, pandas_to_r_matrix, r_element, r_matrix_to_pandas

    if log_expr.shape[1] < 2:
        raise ValueError("PCA needs at least two samples")
    if n_components is not None and n_components < 1:
        raise ValueError(f"n_components must be >= 1, got {n_components}")

    # constant genes are excluded
    varying = log_expr.loc[log_expr.var(axis=1) > 0]
    if varying.empty:
        raise ValueError("No gene varies across samples")

    r, _ = _prep_edger()
    stats = r.importr("stats")
    kwargs = {"center": True, "scale.": False}
    if n_components is not None:
        kwargs["rank."] = int(n_components)
    res = stats.prcomp(pandas_to_r_matrix(varying.T), **kwargs)

    scores = r_matrix_to_pandas(r_element(res, "x"))
    loadings = r_matrix_to_pandas(r_element(res, "rotation"))
    sdev = np.asarray(r_element(res, "sdev"), dtype=float)
    variance = sdev ** 2 / np.sum(sdev ** 2)

    pcs = [f"PC{i + 1}" for i in range(scores.shape[1])]
    scores.columns = pcs
    loadings.columns = pcs
    variance_explained = pd.Series(variance[: len(pcs)], index=pcs)

    logger.info(
        "PCA on %d genes: %s",
        varying.shape[0],
        ", ".join(f"{pc} {v * 100:.1f}%" for pc, v in variance_explained.head(3).items()),
    )
    return PCAResult(scores=scores, variance_explained=variance_explained, loadings=loadings)
