"""
Fit negative-binomial GLMs using edgeR::glmFit.

This module provides the EdgeRModel dataclass for storing fit results
and the glm_fit function for fitting the model.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Sequence, TypeVar, Union
from dataclasses import dataclass
import numpy as np
import pandas as pd

from .utils import _prep_edger, make_dgelist, pandas_to_r_matrix
from .checks import check_se, check_assay_exists, check_r_assay, check_design, n_samples

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


@dataclass
class GlmFitConfig:
    """Configuration used for GLM fitting."""
    dispersion: Optional[Union[float, np.ndarray]] = None
    dispersion_source: str = "tagwise"
    prior_count: float = 0.125
    assay: str = "counts"
    user_kwargs: Optional[Dict[str, Any]] = None


@dataclass
class EdgeRModel:
    """Container for edgeR GLM fit results.

    Use with glm_lrt() or top_tags() for downstream analysis.

    Attributes:
        sample_names: Sample names (column names) from the input SE.
        feature_names: Feature names (row names) from the input SE.
        fit: R object from glmFit (a DGEGLM).
        fit_config: Configuration used for fitting.
        design: Design matrix used for fitting.
        metadata: Optional additional metadata.
    """
    sample_names: Optional[Sequence[str]] = None
    feature_names: Optional[Sequence[str]] = None
    fit: Optional[Any] = None
    fit_config: Optional[GlmFitConfig] = None
    design: Optional[pd.DataFrame] = None
    metadata: Optional[Dict[str, Any]] = None

    def coefficients(self) -> pd.DataFrame:
        """GLM coefficients (natural log scale), genes × design columns."""
        from .utils import r_element, r_matrix_to_pandas

        coefs = r_matrix_to_pandas(r_element(self.fit, "coefficients"))
        if self.design is not None:
            coefs.columns = list(self.design.columns)
        if self.feature_names is not None:
            coefs.index = list(self.feature_names)
        return coefs

    def glm_lrt(
        self,
        coef: Optional[Union[str, int]] = None,
        contrast: Optional[Sequence[float]] = None,
        adjust_method: str = "BH",
    ) -> pd.DataFrame:
        """
        Run the likelihood-ratio test on this fitted model.

        Convenience method that delegates to the glm_lrt function.

        Example:
            >>> model = edger.glm_fit(se, design)
            >>> results = model.glm_lrt(coef=2)
        """
        from .glm_lrt import glm_lrt as _glm_lrt
        return _glm_lrt(self, coef=coef, contrast=contrast, adjust_method=adjust_method)


def _dispersion_source(se: Any) -> Optional[str]:
    rowdata = se.get_row_data()
    names = rowdata.column_names if rowdata is not None else []
    for source in ("tagwise", "trended"):
        if f"{source}.dispersion" in names:
            return source
    if se.metadata and "common.dispersion" in se.metadata:
        return "common"
    return None


def glm_fit(
    se: SE,
    design: pd.DataFrame,
    assay: str = "counts",
    dispersion: Optional[Union[float, np.ndarray]] = None,
    prior_count: float = 0.125,
    **kwargs
) -> EdgeRModel:
    """
    Fit a negative-binomial GLM for each gene using edgeR::glmFit.

    Dispersions come from ``dispersion`` when given; otherwise from the
    DGEList left by ``estimate_disp`` (tagwise, else trended, else common,
    which is the order edgeR itself applies).

    Args:
        se: SummarizedExperiment with R-initialized count assay.
        design: Design matrix (samples × covariates) as pandas DataFrame.
        assay: Counts assay name. Default: "counts".
        dispersion: Optional scalar or per-gene dispersion values.
        prior_count: Prior count used for the shrunk log fold-changes.
        **kwargs: Additional args forwarded to R function.

    Returns:
        EdgeRModel: Container with the fitted model.

    Raises:
        TypeError: If se lacks required attributes or design is not a DataFrame.
        KeyError: If the specified assay does not exist.
        ValueError: If design rows don't match the samples, or no dispersion
            is available.

    Example:
        >>> se = edger.estimate_disp(se, design)
        >>> model = edger.glm_fit(se, design)
        >>> results = edger.glm_lrt(model, coef=2)
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    check_design(design, n_samples(se))

    if dispersion is None:
        source = _dispersion_source(se)
        if source is None:
            raise ValueError(
                "No dispersion available - run estimate_disp() first or pass `dispersion`"
            )
    else:
        source = "user"

    r, pkg = _prep_edger()
    dge = make_dgelist(se, assay)
    design_r = pandas_to_r_matrix(design)

    if dispersion is None:
        dispersion_r = r.ro.NULL
    elif np.isscalar(dispersion):
        dispersion_r = r.FloatVector([float(dispersion)])
    else:
        dispersion_r = r.FloatVector(np.asarray(dispersion, dtype=float))

    fit_obj = pkg.glmFit(
        dge,
        design=design_r,
        dispersion=dispersion_r,
        **{"prior.count": prior_count},
        **kwargs
    )
    logger.info("Fitted NB GLM (%s dispersion) for %d genes", source, se.shape[0])

    config = GlmFitConfig(
        dispersion=dispersion,
        dispersion_source=source,
        prior_count=prior_count,
        assay=assay,
        user_kwargs=kwargs if kwargs else None,
    )

    return EdgeRModel(
        sample_names=se.column_names,
        feature_names=se.row_names,
        fit=fit_obj,
        fit_config=config,
        design=design,
    )
