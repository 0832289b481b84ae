"""
Sample discovery, sample metadata and the genotype design matrix.

Sample ids are the names of the per-sample quantification folders. Each
sample gets one genotype label, taken from a sample sheet or parsed out of
the sample id with a regular expression. The study compares exactly two
genotypes; the reference genotype is the first factor level and becomes the
intercept of the design.
"""

from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Dict, Optional, Sequence, Union
import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Files that mark a directory as one sample's quantification output
QUANT_MARKERS = {
    "salmon": ("quant.sf",),
    "kallisto": ("abundance.h5",),
}


def find_sample_dirs(quant_dir: PathLike, quantifier: str = "salmon") -> Dict[str, Path]:
    """
    List per-sample quantification folders below ``quant_dir``.

    Args:
        quant_dir: Directory holding one result folder per sample.
        quantifier: ``"salmon"`` or ``"kallisto"``.

    Returns:
        Mapping of sample id (folder name) to folder path, sorted by id.

    Raises:
        ValueError: If the quantifier is unknown.
        FileNotFoundError: If the directory is missing or holds no sample folder.
    """
    if quantifier not in QUANT_MARKERS:
        raise ValueError(
            f"Unknown quantifier '{quantifier}'. Options: {sorted(QUANT_MARKERS)}"
        )
    quant_dir = Path(quant_dir)
    if not quant_dir.is_dir():
        raise FileNotFoundError(f"Quantification directory not found: {quant_dir}")

    markers = QUANT_MARKERS[quantifier]
    dirs = {
        p.name: p
        for p in sorted(quant_dir.iterdir())
        if p.is_dir() and any((p / m).exists() for m in markers)
    }
    if not dirs:
        raise FileNotFoundError(
            f"No {quantifier} results ({' or '.join(markers)}) found under {quant_dir}"
        )
    logger.info("Found %d %s sample folders in %s", len(dirs), quantifier, quant_dir)
    return dirs


def read_sample_sheet(path: PathLike) -> pd.DataFrame:
    """Read a TSV/CSV sample sheet with at least ``sample`` and ``genotype`` columns."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sample sheet not found: {path}")
    sep = "," if path.suffix.lower() == ".csv" else "\t"
    sheet = pd.read_csv(path, sep=sep, dtype=str)
    for col in ("sample", "genotype"):
        if col not in sheet.columns:
            raise KeyError(f"Sample sheet {path} lacks a '{col}' column")
    return sheet.drop_duplicates("sample").set_index("sample")


def _genotypes_from_pattern(sample_ids: Sequence[str], pattern: str) -> list:
    regex = re.compile(pattern)
    labels = []
    for sample in sample_ids:
        match = regex.search(sample)
        if match is None:
            raise ValueError(f"Genotype pattern {pattern!r} does not match sample '{sample}'")
        labels.append(match.group(1) if regex.groups else match.group(0))
    return labels


def build_sample_table(
    sample_ids: Sequence[str],
    sample_sheet: Optional[Union[PathLike, pd.DataFrame]] = None,
    genotype_pattern: Optional[str] = None,
    reference: Optional[str] = None,
) -> pd.DataFrame:
    """
    Build the per-sample metadata table.

    Args:
        sample_ids: Sample identifiers in count-matrix column order.
        sample_sheet: Path to, or DataFrame of, a sheet indexed (or keyed by a
            ``sample`` column) with a ``genotype`` column. Extra columns are kept.
        genotype_pattern: Regular expression applied to each sample id when no
            sheet is given; the first capture group is the genotype.
        reference: Reference genotype level. Default: first level in sorted order.

    Returns:
        DataFrame indexed by sample id with a categorical ``genotype`` column
        whose first category is the reference.

    Raises:
        KeyError: If samples are missing from the sheet.
        ValueError: If neither source is given, the pattern does not match,
            there are not exactly two genotypes, or the reference is unknown.
    """
    sample_ids = [str(s) for s in sample_ids]

    if sample_sheet is not None:
        if isinstance(sample_sheet, pd.DataFrame):
            sheet = sample_sheet.copy()
            if "sample" in sheet.columns:
                sheet = sheet.set_index("sample")
        else:
            sheet = read_sample_sheet(sample_sheet)
        sheet.index = sheet.index.astype(str)
        missing = [s for s in sample_ids if s not in sheet.index]
        if missing:
            raise KeyError(f"Samples missing from sample sheet: {missing}")
        table = sheet.loc[sample_ids].copy()
        table["genotype"] = table["genotype"].astype(str)
    elif genotype_pattern is not None:
        table = pd.DataFrame(
            {"genotype": _genotypes_from_pattern(sample_ids, genotype_pattern)},
            index=sample_ids,
        )
    else:
        raise ValueError("Either a sample sheet or a genotype pattern is required")

    levels = sorted(table["genotype"].unique())
    if len(levels) != 2:
        raise ValueError(f"Expected exactly two genotypes, found {levels}")
    if reference is not None:
        if reference not in levels:
            raise ValueError(f"Reference genotype '{reference}' not in {levels}")
        levels = [reference] + [lvl for lvl in levels if lvl != reference]

    table["genotype"] = pd.Categorical(table["genotype"], categories=levels)
    table.index.name = "sample"
    logger.info(
        "Samples per genotype: %s",
        ", ".join(f"{k}={v}" for k, v in table["genotype"].value_counts(sort=False).items()),
    )
    return table


def design_matrix(samples: pd.DataFrame, factor: str = "genotype") -> pd.DataFrame:
    """
    Treatment-coded design: ``Intercept`` plus one indicator per non-reference level.

    Indicator columns are named ``<factor><level>`` as R's model.matrix does,
    e.g. ``genotypemutant``.

    Example:
        >>> design_matrix(samples).columns.tolist()
        ['Intercept', 'genotypemutant']
    """
    if factor not in samples.columns:
        raise KeyError(f"Column '{factor}' not found in sample table")
    values = samples[factor]
    if not isinstance(values.dtype, pd.CategoricalDtype):
        values = pd.Categorical(values.astype(str), categories=sorted(values.astype(str).unique()))
    else:
        values = values.values

    design = pd.DataFrame({"Intercept": 1.0}, index=samples.index)
    for level in values.categories[1:]:
        design[f"{factor}{level}"] = (values == level).astype(float)
    return design
