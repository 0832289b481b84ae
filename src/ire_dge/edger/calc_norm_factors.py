"""
Compute normalization factors using edgeR::calcNormFactors.

This module provides a functional interface to calculate normalization factors
and store them, with the library sizes they apply to, in the column_data of a
SummarizedExperiment.
"""

from __future__ import annotations
import logging
from typing import Optional, TypeVar
import numpy as np

from .utils import _prep_edger
from .checks import check_se, check_assay_exists, check_r_assay

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def calc_norm_factors(
    se: SE,
    assay: str = "counts",
    method: str = "TMM",
    refColumn: Optional[int] = None,
    logratioTrim: float = 0.3,
    sumTrim: float = 0.05,
    doWeighting: bool = True,
    Acutoff: float = -1e10,
    p: float = 0.75,
    in_place: bool = False,
    **kwargs
) -> SE:
    """
    Compute normalization factors and store in column_data.

    Wraps ``edgeR::calcNormFactors``. Library sizes are recomputed from the
    assay as it is now (call this after filtering) and stored in
    column_data['lib.size'] next to column_data['norm.factors'].

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        assay: Name of the counts assay. Default: "counts".
        method: Normalization method: "TMM", "TMMwsp", "RLE", "upperquartile", or "none".
        refColumn: Reference column for normalization (0-indexed, or None for auto).
        logratioTrim: Amount of trimming of the log-ratios (TMM only).
        sumTrim: Amount of trimming of intensity values (TMM only).
        doWeighting: Whether to use weighted trimmed mean (TMM only).
        Acutoff: Cutoff on average log-expression (TMM only).
        p: Quantile for upperquartile normalization.
        in_place: If True, modify se in place. Default: False.
        **kwargs: Additional args forwarded to R function.

    Returns:
        SummarizedExperiment with 'lib.size' and 'norm.factors' in column_data.

    Example:
        >>> from ire_dge import initialize_r
        >>> import ire_dge.edger as edger
        >>> se = initialize_r(se, assay="counts")
        >>> se = edger.calc_norm_factors(se, method="TMM")
        >>> se.column_data["norm.factors"]
    """
    from ..r_init import get_rmat

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    # R's refColumn is 1-based
    refColumn_r = r.ro.NULL if refColumn is None else refColumn + 1

    r_factors = pkg.calcNormFactors(
        rmat,
        method=method,
        refColumn=refColumn_r,
        logratioTrim=logratioTrim,
        sumTrim=sumTrim,
        doWeighting=doWeighting,
        Acutoff=Acutoff,
        p=p,
        **kwargs
    )

    norm_factors = np.asarray(r_factors, dtype=float)
    lib_size = np.asarray(r.ro.baseenv["colSums"](rmat), dtype=float)
    logger.info(
        "%s normalization factors: %s",
        method, ", ".join(f"{f:.3f}" for f in norm_factors),
    )

    output = se._define_output(in_place=in_place)
    coldata = output.get_column_data()
    if coldata is not None:
        new_coldata = coldata.set_column("lib.size", lib_size)
        new_coldata = new_coldata.set_column("norm.factors", norm_factors)
    else:
        from biocframe import BiocFrame
        new_coldata = BiocFrame({"lib.size": lib_size, "norm.factors": norm_factors})

    return output.set_column_data(new_coldata, in_place=True)
