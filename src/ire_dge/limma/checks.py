"""
Input validation utilities for limma functions.

The gene-set tests take the same SummarizedExperiment variants and design
matrices as the edgeR wrappers, so the checks are shared.
"""

from ..edger.checks import check_se, check_assay_exists, check_r_assay, check_design

__all__ = ["check_se", "check_assay_exists", "check_r_assay", "check_design"]
