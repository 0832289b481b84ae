"""
Run the fry rotation gene-set test using limma::fry.

Called on the DGEList left by ``edger.estimate_disp``, R dispatches to edgeR's
``fry.DGEList`` method, which tests each set against the negative-binomial
model's design and contrast.
"""

from __future__ import annotations
import logging
from typing import Any, Iterable, Mapping, Optional, Union
import numpy as np
import pandas as pd

from .utils import _limma
from .checks import check_se, check_assay_exists, check_r_assay, check_design

logger = logging.getLogger(__name__)

# limma column names -> result table column names
FRY_COLUMNS = {
    "NGenes": "n_genes",
    "Direction": "direction",
    "PValue": "p_value",
    "FDR": "adj_p_value",
    "PValue.Mixed": "p_value_mixed",
    "FDR.Mixed": "adj_p_value_mixed",
}


def fry(
    se: Any,
    index: Mapping[str, Iterable[str]],
    design: pd.DataFrame,
    contrast: Optional[Union[int, str]] = None,
    assay: str = "counts",
    **kwargs: Any
) -> pd.DataFrame:
    """
    Test gene sets for coordinated differential expression.

    Wraps ``limma::fry`` on the experiment's DGEList. Set members are gene
    names matching the experiment's row names; members that are not rows are
    ignored.

    Args:
        se: SummarizedExperiment with R-initialized counts, normally after
            ``edger.estimate_disp`` so the dispersions are reused.
        index: Mapping of set name to member gene names.
        design: Design matrix used for the DE model.
        contrast: Design column to test, as a 1-based index or column name.
            Default: last design column.
        assay: Counts assay name.
        **kwargs: Additional args forwarded to R function.

    Returns:
        pd.DataFrame, one row per set sorted by p-value, with columns
        ``gene_set``, ``n_genes``, ``direction``, ``p_value``,
        ``adj_p_value`` and, when limma reports them, ``p_value_mixed``
        and ``adj_p_value_mixed``.

    Raises:
        ValueError: If no set has a member among the rows, or the contrast
            is not a design column.

    Example:
        >>> se = edger.estimate_disp(se, design)
        >>> enrichment = limma.fry(se, ire_sets, design, contrast=2)
    """
    from ..edger.utils import _prep_edger, make_dgelist, pandas_to_r_matrix, r_frame_to_pandas
    from ..gene_sets import gene_set_indices

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    n_samples = len(se.column_names) if se.column_names is not None else se.shape[1]
    check_design(design, n_samples)

    if contrast is None:
        contrast = design.shape[1]
    elif isinstance(contrast, str):
        if contrast not in design.columns:
            raise ValueError(f"Contrast '{contrast}' is not a design column: {list(design.columns)}")
        contrast = list(design.columns).index(contrast) + 1
    if not 1 <= int(contrast) <= design.shape[1]:
        raise ValueError(f"Contrast index {contrast} outside 1..{design.shape[1]}")

    indices = {
        name: idx
        for name, idx in gene_set_indices(index, se.row_names).items()
        if idx
    }
    if not indices:
        raise ValueError("No gene set has members among the experiment's genes")

    # edgeR provides the DGEList method of fry
    r, _ = _prep_edger()
    limma_pkg = _limma()
    dge = make_dgelist(se, assay)

    index_r = r.ro.ListVector({
        name: r.IntVector((np.asarray(idx) + 1).tolist())
        for name, idx in indices.items()
    })

    res = limma_pkg.fry(
        dge,
        index=index_r,
        design=pandas_to_r_matrix(design),
        contrast=int(contrast),
        **kwargs
    )

    df = r_frame_to_pandas(res)
    df.index = df.index.astype(str)
    df = df.reset_index(names="gene_set").rename(columns=FRY_COLUMNS)

    # limma only adjusts when more than one set is tested
    if "adj_p_value" not in df.columns:
        df["adj_p_value"] = df["p_value"]
    if "p_value_mixed" in df.columns and "adj_p_value_mixed" not in df.columns:
        df["adj_p_value_mixed"] = df["p_value_mixed"]

    df["n_genes"] = df["n_genes"].astype(int)
    df = df.sort_values("p_value", kind="mergesort").reset_index(drop=True)
    logger.info("fry tested %d gene sets (contrast column %d)", len(df), int(contrast))
    return df
