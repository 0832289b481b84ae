"""
Filter low-abundance genes.

``filter_by_expr`` wraps edgeR's filterByExpr; ``filter_by_cpm`` applies the
classic "CPM above a cutoff in at least n samples" rule. Both return a boolean
mask and leave the SummarizedExperiment untouched.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence, TypeVar
import numpy as np
import pandas as pd

from .utils import _prep_edger, pandas_to_r_matrix, make_dgelist
from .checks import check_se, check_assay_exists, check_r_assay

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def filter_by_expr(
    se: SE,
    assay: str = "counts",
    group: Optional[Sequence[str]] = None,
    design: Optional[pd.DataFrame] = None,
    min_count: float = 10,
    min_total_count: float = 15,
    large_n: int = 10,
    min_prop: float = 0.7,
    **kwargs
) -> np.ndarray:
    """
    Compute expression filter mask using edgeR's filterByExpr.

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        assay: Name of the counts assay. Default: "counts".
        group: Optional group factor for filtering.
        design: Optional design matrix as pandas DataFrame.
        min_count: Minimum count required in at least some samples. Default: 10.
        min_total_count: Minimum total count across all samples. Default: 15.
        large_n: Number of samples per group considered "large". Default: 10.
        min_prop: Minimum proportion of samples in the smallest group. Default: 0.7.
        **kwargs: Additional args forwarded to R function.

    Returns:
        Boolean numpy array mask (True = keep gene).

    Example:
        >>> mask = edger.filter_by_expr(se, group=se.column_data["genotype"])
        >>> keep = counts.loc[mask]
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    r, pkg = _prep_edger()
    dge = make_dgelist(se, assay)

    group_r = r.StrVector([str(g) for g in group]) if group is not None else r.ro.NULL
    design_r = pandas_to_r_matrix(design) if design is not None else r.ro.NULL

    mask_r = pkg.filterByExpr(
        dge,
        group=group_r,
        design=design_r,
        **{
            "min.count": min_count,
            "min.total.count": min_total_count,
            "large.n": large_n,
            "min.prop": min_prop,
        },
        **kwargs
    )

    mask = np.asarray(mask_r, dtype=bool)
    logger.info("filterByExpr keeps %d of %d genes", mask.sum(), len(mask))
    return mask


def filter_by_cpm(
    se: SE,
    assay: str = "counts",
    min_cpm: float = 1.0,
    min_samples: Optional[int] = None,
    group: Optional[Sequence[str]] = None,
) -> np.ndarray:
    """
    Keep genes with CPM >= ``min_cpm`` in at least ``min_samples`` samples.

    CPM is computed on raw library sizes (``edgeR::cpm``), since filtering
    happens before normalization factors exist.

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        assay: Name of the counts assay.
        min_cpm: CPM cutoff. Default: 1.0.
        min_samples: Number of samples that must pass the cutoff. Default:
            the size of the smallest group, or all samples if no group is given.
        group: Optional group labels used to derive ``min_samples``.

    Returns:
        Boolean numpy array mask (True = keep gene).
    """
    from .cpm import cpm

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    if min_samples is None:
        if group is not None:
            min_samples = int(pd.Series([str(g) for g in group]).value_counts().min())
        else:
            min_samples = se.shape[1]
    if min_samples < 1 or min_samples > se.shape[1]:
        raise ValueError(
            f"min_samples must be between 1 and {se.shape[1]}, got {min_samples}"
        )

    with_cpm = cpm(se, assay=assay, log=False, normalized_lib_sizes=False)
    values = np.asarray(with_cpm.assays["cpm"])
    mask = (values >= min_cpm).sum(axis=1) >= min_samples

    logger.info(
        "CPM >= %s in >= %d samples keeps %d of %d genes",
        min_cpm, min_samples, mask.sum(), len(mask),
    )
    return mask
