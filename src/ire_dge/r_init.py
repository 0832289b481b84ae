"""
R initialization utilities for SummarizedExperiment objects.

Counts handed to edgeR/limma must live in R. ``initialize_r`` converts an
assay of any BiocPy SummarizedExperiment variant into an ``RMatrixAdapter``;
the analysis wrappers refuse assays that have not been converted.

Usage:
    >>> from ire_dge import initialize_r, build_experiment
    >>> se = build_experiment(counts_df, samples_df)
    >>> se = initialize_r(se, assay="counts")
"""

from __future__ import annotations
import logging
from typing import Any, TypeVar
import numpy as np
import pandas as pd

from .rmatrixadapter import RMatrixAdapter

logger = logging.getLogger(__name__)

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def build_experiment(counts: pd.DataFrame, samples: pd.DataFrame) -> Any:
    """
    Assemble a SummarizedExperiment from a gene-level count table.

    Args:
        counts: genes × samples DataFrame of counts. The index becomes the
            row names and the columns the column names.
        samples: Sample table indexed by sample id (see ``ire_dge.samples``).
            Rows are reordered to match ``counts.columns``.

    Returns:
        SummarizedExperiment with a plain numpy ``counts`` assay.

    Raises:
        ValueError: If the sample ids of counts and sample table differ, or
            the gene index is not unique.
    """
    from biocframe import BiocFrame
    from summarizedexperiment import SummarizedExperiment

    if set(counts.columns) != set(samples.index):
        missing = sorted(set(counts.columns) ^ set(samples.index))
        raise ValueError(f"Samples in counts and sample table differ: {missing}")
    if not counts.index.is_unique:
        raise ValueError("Gene index of the count matrix must be unique")

    samples = samples.loc[list(counts.columns)]
    coldata = {"sample": np.asarray(samples.index, dtype=str)}
    for col in samples.columns:
        values = samples[col]
        if isinstance(values.dtype, pd.CategoricalDtype):
            values = values.astype(str)
        coldata[col] = np.asarray(values)

    return SummarizedExperiment(
        assays={"counts": counts.to_numpy(dtype=float)},
        row_names=[str(g) for g in counts.index],
        column_names=[str(s) for s in counts.columns],
        column_data=BiocFrame(coldata),
    )


def initialize_r(
    se: SE,
    assay: str = "counts",
    in_place: bool = False,
) -> SE:
    """
    Initialize R backing for a SummarizedExperiment assay.

    Converts the specified assay to an RMatrixAdapter carrying the
    experiment's row and column names as R dimnames.

    Args:
        se: Input SummarizedExperiment (any variant).
        assay: Name of the assay to convert. Default: "counts".
        in_place: If True, modify se in place. If False, return a new SE.

    Returns:
        The same SE type with the assay converted to RMatrixAdapter.

    Raises:
        KeyError: If the specified assay does not exist.
    """
    from bioc2ri.lazy_r_env import get_r_environment
    from bioc2ri import numpy_plugin
    from bioc2ri.rnames import set_rownames, set_colnames

    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available: {list(se.assay_names)}")

    arr = se.assays[assay]
    if isinstance(arr, RMatrixAdapter):
        return se

    r = get_r_environment()
    np_eng = numpy_plugin()

    rmat = np_eng.py2r(np.asarray(arr, dtype=float))
    if se.row_names is not None:
        rmat = set_rownames(rmat, np_eng.py2r(np.asarray(se.row_names, dtype=str)))
    if se.column_names is not None:
        rmat = set_colnames(rmat, np_eng.py2r(np.asarray(se.column_names, dtype=str)))

    new_assays = dict(se.assays)
    new_assays[assay] = RMatrixAdapter(rmat, r)

    output = se._define_output(in_place=in_place)
    output._assays = new_assays
    logger.debug("Assay '%s' moved to R (%d x %d)", assay, *new_assays[assay].shape)
    return output


def check_r_initialized(se: Any, assay: str) -> None:
    """
    Check that an assay is R-initialized.

    Raises:
        KeyError: If the assay does not exist.
        TypeError: If the assay is not an RMatrixAdapter.
    """
    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available: {list(se.assay_names)}")

    if not isinstance(se.assays[assay], RMatrixAdapter):
        raise TypeError(
            f"Assay '{assay}' is not R-initialized. "
            f"Call initialize_r(se, assay='{assay}') first."
        )


def is_r_initialized(se: Any, assay: str) -> bool:
    """True if the assay exists and is an RMatrixAdapter."""
    if assay not in se.assay_names:
        return False
    return isinstance(se.assays[assay], RMatrixAdapter)


def get_rmat(se: Any, assay: str) -> Any:
    """
    Get the underlying R matrix from an R-initialized assay.

    Raises:
        TypeError: If the assay is not R-initialized.
    """
    check_r_initialized(se, assay)
    adapter: RMatrixAdapter = se.assays[assay]
    return adapter.rmat
