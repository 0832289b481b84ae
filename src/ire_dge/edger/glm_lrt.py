"""
Run likelihood-ratio tests using edgeR::glmLRT.

This module provides a functional interface to perform per-gene
likelihood-ratio tests on an EdgeRModel and return the full result table.
"""

from __future__ import annotations
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd

from .utils import _prep_edger
from .checks import check_edger_model, check_coef_or_contrast
from .glm_fit import EdgeRModel
from .top_tags import top_tags


def glm_lrt(
    model: EdgeRModel,
    coef: Optional[Union[str, int]] = None,
    contrast: Optional[Sequence[float]] = None,
    adjust_method: str = "BH",
) -> pd.DataFrame:
    """
    Run a likelihood-ratio test on a fitted EdgeRModel.

    Wraps ``edgeR::glmLRT`` and extracts every gene, in input order, through
    ``edgeR::topTags``.

    Args:
        model: EdgeRModel from glm_fit().
        coef: Coefficient name (str) or index (int, 1-based) to drop.
            Defaults to the last design column when neither coef nor
            contrast is given.
        contrast: Contrast vector (alternative to coef).
        adjust_method: Multiple testing adjustment method. Default: "BH".

    Returns:
        pd.DataFrame with columns ``gene``, ``log_fc``, ``log_cpm``,
        ``lr_statistic``, ``p_value``, ``adj_p_value``.

    Raises:
        TypeError: If model is not an EdgeRModel.
        ValueError: If model.fit is None, both coef and contrast are given,
            or the contrast length does not match the design.

    Example:
        >>> model = edger.glm_fit(se, design)
        >>> results = edger.glm_lrt(model, coef=2)
        >>> sig_genes = results[results["adj_p_value"] < 0.05]
    """
    check_edger_model(model)
    check_coef_or_contrast(coef, contrast)

    if coef is None and contrast is None:
        if model.design is None:
            raise ValueError("Either `coef` or `contrast` must be specified")
        coef = model.design.shape[1]

    r, pkg = _prep_edger()

    if contrast is not None:
        contrast = np.asarray(contrast, dtype=float)
        if model.design is not None and len(contrast) != model.design.shape[1]:
            raise ValueError(
                f"Contrast has {len(contrast)} entries but design has "
                f"{model.design.shape[1]} columns"
            )
        lrt = pkg.glmLRT(model.fit, contrast=r.FloatVector(contrast))
    elif isinstance(coef, str):
        lrt = pkg.glmLRT(model.fit, coef=r.StrVector([coef]))
    else:
        lrt = pkg.glmLRT(model.fit, coef=r.IntVector([int(coef)]))

    return top_tags(lrt, n=None, adjust_method=adjust_method, sort_by="none")
