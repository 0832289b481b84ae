"""
Extract ranked genes using edgeR::topTags.

This module provides a functional interface to extract results from
an edgeR test object (e.g. from glmLRT) as a pandas DataFrame.
"""

from __future__ import annotations
from typing import Any, Optional
import pandas as pd

from .utils import _prep_edger, r_element, r_frame_to_pandas

# edgeR column names -> result table column names
RESULT_COLUMNS = {
    "logFC": "log_fc",
    "logCPM": "log_cpm",
    "LR": "lr_statistic",
    "F": "f_statistic",
    "PValue": "p_value",
    "FDR": "adj_p_value",
}


def top_tags(
    lrt_obj: Any,
    n: Optional[int] = None,
    adjust_method: str = "BH",
    sort_by: str = "PValue",
    **kwargs
) -> pd.DataFrame:
    """
    Extract top-ranked genes from a test result.

    Wraps ``edgeR::topTags``. Returns a DataFrame with standardized
    column names for convenient downstream analysis.

    Args:
        lrt_obj: R object from glmLRT or a similar edgeR test.
        n: Number of top genes to return. None = all genes.
        adjust_method: Multiple testing correction method. Default: "BH".
        sort_by: "PValue", "logFC" or "none". Default: "PValue".
        **kwargs: Additional args forwarded to R function.

    Returns:
        pd.DataFrame: Results table with standardized columns:
            - gene: gene identifier (from row names)
            - log_fc: log2 fold-change
            - log_cpm: average log2 counts per million
            - lr_statistic: likelihood-ratio statistic (LR tests)
            - p_value: raw p-value
            - adj_p_value: adjusted p-value (FDR)
    """
    r, pkg = _prep_edger()

    if n is None:
        n = int(r.ro.baseenv["nrow"](lrt_obj)[0])

    top_r = pkg.topTags(
        lrt_obj,
        n=n,
        **{"adjust.method": adjust_method, "sort.by": sort_by},
        **kwargs
    )

    df = r_frame_to_pandas(r_element(top_r, "table"))
    df.index = df.index.astype(str)
    df = df.reset_index(names="gene")
    return df.rename(columns=RESULT_COLUMNS)
