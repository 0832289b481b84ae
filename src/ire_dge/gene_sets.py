"""
Gene-set collections: reading and mapping onto the expressed-gene universe.

Curated IRE gene sets are distributed as a serialized R named list of stable
gene identifiers (``.rds``). They are translated to gene symbols through the
annotation and intersected with the genes that survived filtering before any
test sees them.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Union
import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
GeneSets = Dict[str, List[str]]


def _read_rds(path: Path) -> GeneSets:
    from bioc2ri.lazy_r_env import get_r_environment

    r = get_r_environment()
    obj = r.ro.baseenv["readRDS"](str(path))
    names = r.ro.baseenv["names"](obj)
    if names is r.ro.NULL:
        raise ValueError(f"{path} does not hold a named list of gene sets")

    sets: GeneSets = {}
    for name in names:
        members = r.ro.baseenv["as.character"](r.ro.baseenv["[["](obj, name))
        sets[str(name)] = [str(m) for m in members]
    return sets


def _read_gmt(path: Path) -> GeneSets:
    sets: GeneSets = {}
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            fields = line.rstrip("\n\r").split("\t")
            if len(fields) < 2 or not fields[0]:
                continue
            # second field is the description
            sets[fields[0]] = [g for g in fields[2:] if g]
    return sets


def read_gene_sets(path: PathLike) -> GeneSets:
    """
    Read a gene-set collection.

    Supported formats: R ``.rds`` named list of character vectors, and
    ``.gmt`` (name, description, members; tab-separated).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Gene-set file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".rds":
        sets = _read_rds(path)
    elif suffix == ".gmt":
        sets = _read_gmt(path)
    else:
        raise ValueError(f"Unsupported gene-set format '{suffix}' (use .rds or .gmt)")

    logger.info(
        "Read %d gene sets from %s: %s",
        len(sets), path.name, ", ".join(f"{k} ({len(v)})" for k, v in sets.items()),
    )
    return sets


def map_gene_sets(
    gene_sets: Mapping[str, Iterable[str]],
    id_to_symbol: Union[pd.Series, Mapping[str, str], None],
    universe: Iterable[str],
    min_size: int = 1,
) -> GeneSets:
    """
    Translate gene-set members to symbols and restrict them to the universe.

    Args:
        gene_sets: Named collections of stable gene identifiers.
        id_to_symbol: Mapping of gene id to symbol. Pass None when the sets
            already hold symbols.
        universe: Detectable genes (row names of the filtered count matrix).
        min_size: Sets with fewer members after mapping are dropped.

    Returns:
        Named collections of unique symbols, each a subset of ``universe``,
        members in universe order.
    """
    universe = [str(g) for g in universe]
    universe_set = set(universe)
    if id_to_symbol is not None and not isinstance(id_to_symbol, pd.Series):
        id_to_symbol = pd.Series(dict(id_to_symbol), dtype=object)

    mapped: GeneSets = {}
    for name, members in gene_sets.items():
        members = [str(m) for m in members]
        if id_to_symbol is not None:
            symbols = id_to_symbol.reindex(members).dropna()
            n_unmapped = len(members) - len(symbols)
            if n_unmapped:
                logger.debug("%s: %d ids have no symbol", name, n_unmapped)
            members = list(symbols)
        keep = set(members) & universe_set
        detected = [g for g in universe if g in keep]

        if len(detected) < min_size:
            logger.warning(
                "Gene set %s dropped: %d detected genes (minimum %d)",
                name, len(detected), min_size,
            )
            continue
        mapped[name] = detected
        logger.info("Gene set %s: %d of %d members detected", name, len(detected), len(members))

    return mapped


def gene_set_indices(gene_sets: Mapping[str, Iterable[str]], genes: Iterable[str]) -> Dict[str, List[int]]:
    """0-based row positions of each set's members in ``genes``; unknown members are skipped."""
    position = {str(g): i for i, g in enumerate(genes)}
    return {
        name: [position[g] for g in members if g in position]
        for name, members in gene_sets.items()
    }
