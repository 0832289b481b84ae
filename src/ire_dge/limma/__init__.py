"""Limma: gene-set testing for RNA-seq count models.

Python wrapper for limma's rotation gene-set test, called through rpy2 on the
DGEList produced by the edgeR wrappers.

Functional API:
    >>> import ire_dge.limma as limma
    >>> se = edger.estimate_disp(se, design)
    >>> enrichment = limma.fry(se, gene_sets, design, contrast=2)
"""

# Check/install limma R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["limma"])

from .fry import fry
from .utils import _limma

__all__ = [
    "fry",
    "_limma",
]
