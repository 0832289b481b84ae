"""edgeR: negative-binomial models for RNA-seq counts.

Python wrappers for the R edgeR package, called through rpy2 on
SummarizedExperiment objects whose counts assay was moved to R with
``initialize_r``.

Functional API:
    >>> import ire_dge.edger as edger
    >>> quant = edger.catch_salmon(edger.find_sample_dirs("salmon/"))
    >>> mask = edger.filter_by_cpm(se, min_cpm=1, group=genotypes)
    >>> se = edger.calc_norm_factors(se, method="TMM")
    >>> se = edger.estimate_disp(se, design)
    >>> model = edger.glm_fit(se, design)
    >>> results = edger.glm_lrt(model, coef=2)
"""

# Check/install edgeR R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["edgeR"])

from .catch_quant import (
    TranscriptQuant,
    catch_kallisto,
    catch_salmon,
    find_sample_dirs,
    read_quantification,
)
from .calc_norm_factors import calc_norm_factors
from .cpm import cpm
from .filter_by_expr import filter_by_cpm, filter_by_expr
from .estimate_disp import estimate_disp
from .glm_fit import glm_fit, EdgeRModel, GlmFitConfig
from .glm_lrt import glm_lrt
from .top_tags import top_tags
from .utils import _prep_edger, make_dgelist

__all__ = [
    # Quantification import
    "TranscriptQuant",
    "catch_salmon",
    "catch_kallisto",
    "find_sample_dirs",
    "read_quantification",
    # Functional API
    "calc_norm_factors",
    "cpm",
    "filter_by_expr",
    "filter_by_cpm",
    "estimate_disp",
    "glm_fit",
    "glm_lrt",
    "top_tags",
    # Model classes
    "EdgeRModel",
    "GlmFitConfig",
    # Utilities
    "_prep_edger",
    "make_dgelist",
]
