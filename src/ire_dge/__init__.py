"""ire_dge: IRE-focused RNA-seq differential expression on edgeR and limma.

The pure-Python layers (sample tables, annotation, gene sets, config, plots)
import without R. The ``edger`` and ``limma`` subpackages are loaded lazily,
so the R dependency check only runs when they are first used.

Usage:
    >>> from ire_dge import build_experiment, initialize_r
    >>> se = initialize_r(build_experiment(counts, samples))
    >>> # edgeR is NOT loaded yet - no R dependency check
    >>>
    >>> import ire_dge.edger as edger  # NOW edgeR is checked/installed
    >>> se = edger.calc_norm_factors(se)
"""

from __future__ import annotations

import importlib

# Core exports that don't require R
from .rmatrixadapter import RMatrixAdapter
from .r_init import (
    build_experiment,
    initialize_r,
    check_r_initialized,
    is_r_initialized,
    get_rmat,
)
from .r_utils import ensure_r_dependencies, missing_r_packages, ANALYSIS_R_PACKAGES
from .annotation import read_annotation, summarize_to_genes, gene_id_to_symbol
from .samples import build_sample_table, design_matrix, find_sample_dirs
from .gene_sets import read_gene_sets, map_gene_sets
from .config import AnalysisConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "RMatrixAdapter",
    "build_experiment",
    "initialize_r",
    "check_r_initialized",
    "is_r_initialized",
    "get_rmat",
    "ensure_r_dependencies",
    "missing_r_packages",
    "ANALYSIS_R_PACKAGES",
    "read_annotation",
    "summarize_to_genes",
    "gene_id_to_symbol",
    "build_sample_table",
    "design_matrix",
    "find_sample_dirs",
    "read_gene_sets",
    "map_gene_sets",
    "AnalysisConfig",
    "load_config",
    # Lazy-loaded submodules
    "edger",
    "limma",
]

# Submodules to be lazily loaded
_LAZY_SUBMODULES = {"edger", "limma"}


def __getattr__(name: str):
    """Lazy loading of submodules per PEP 562."""
    if name in _LAZY_SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    """Include lazy submodules in dir() output."""
    return list(__all__)
