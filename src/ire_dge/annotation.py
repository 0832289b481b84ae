"""
Transcript-to-gene annotation and gene-level aggregation.

Gene-level counts are the sum of the counts of a gene's transcripts. Rows of
the result are keyed by gene symbol.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Union
import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ANNOTATION_COLUMNS = ["transcript_id", "gene_id", "gene_name"]


def read_annotation(
    path: PathLike,
    transcript_col: str = "transcript_id",
    gene_id_col: str = "gene_id",
    gene_name_col: str = "gene_name",
) -> pd.DataFrame:
    """
    Read a tab-separated transcript → gene table.

    Args:
        path: TSV file (optionally gzipped).
        transcript_col: Column holding transcript identifiers.
        gene_id_col: Column holding stable gene identifiers.
        gene_name_col: Column holding gene symbols.

    Returns:
        DataFrame with columns ``transcript_id``, ``gene_id``, ``gene_name``.
        Genes without a symbol are named by their gene id.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If one of the named columns is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    table = pd.read_csv(path, sep="\t", dtype=str)
    wanted = [transcript_col, gene_id_col, gene_name_col]
    missing = [c for c in wanted if c not in table.columns]
    if missing:
        raise KeyError(f"Annotation {path} lacks columns {missing}; has {list(table.columns)}")

    table = table[wanted].rename(columns=dict(zip(wanted, ANNOTATION_COLUMNS)))
    table = table.dropna(subset=["transcript_id", "gene_id"])
    blank = table["gene_name"].isna() | (table["gene_name"].str.strip() == "")
    table.loc[blank, "gene_name"] = table.loc[blank, "gene_id"]

    n_before = len(table)
    table = table.drop_duplicates("transcript_id").reset_index(drop=True)
    if len(table) < n_before:
        logger.warning("Dropped %d duplicated transcript rows", n_before - len(table))

    logger.info(
        "Annotation: %d transcripts, %d genes, %d symbols",
        len(table), table["gene_id"].nunique(), table["gene_name"].nunique(),
    )
    return table


def summarize_to_genes(
    tx_counts: pd.DataFrame,
    annotation: pd.DataFrame,
    key: str = "gene_name",
) -> pd.DataFrame:
    """
    Sum transcript counts into gene-level counts.

    Args:
        tx_counts: transcripts × samples counts indexed by transcript id.
        annotation: Output of ``read_annotation``.
        key: Annotation column that labels the genes. Default: ``gene_name``.

    Returns:
        genes × samples DataFrame, index named ``gene``, sorted by gene.

    Raises:
        ValueError: If no transcript is found in the annotation.
    """
    if key not in annotation.columns:
        raise KeyError(f"Annotation has no column '{key}'")

    tx_to_gene = annotation.set_index("transcript_id")[key]
    genes = tx_to_gene.reindex(tx_counts.index.astype(str))
    unmatched = genes.isna()

    if unmatched.all():
        raise ValueError(
            "None of the quantified transcripts are in the annotation; "
            "check transcript id versions"
        )
    if unmatched.any():
        logger.warning(
            "%d of %d transcripts are not in the annotation and were dropped",
            unmatched.sum(), len(unmatched),
        )

    matched = tx_counts.loc[~unmatched.to_numpy()]
    gene_counts = matched.groupby(genes[~unmatched].to_numpy()).sum()
    gene_counts.index.name = "gene"
    gene_counts = gene_counts.sort_index()

    logger.info(
        "Summarized %d transcripts into %d genes", len(matched), len(gene_counts)
    )
    return gene_counts


def gene_id_to_symbol(annotation: pd.DataFrame) -> pd.Series:
    """Series mapping stable gene id to gene symbol (one symbol per id)."""
    mapping = annotation.drop_duplicates("gene_id").set_index("gene_id")["gene_name"]
    mapping.index.name = "gene_id"
    return mapping
