"""
The analysis run: quantification to report.

Stages run in order, each taking the previous stage's output:

1. ``load_gene_counts``: salmon/kallisto output -> gene-level counts and samples
2. ``filter_and_normalize``: low-count filter, then TMM on the kept genes
3. ``explore``: logCPM and PCA
4. ``test_differential_expression``: dispersion, NB GLM, likelihood-ratio test
5. ``test_gene_sets``: IRE gene sets through ``limma::fry``
6. ``render_figures``: volcano, PCA, enrichment bars, gene-set heatmap

``run_analysis`` chains them and writes the report.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import matplotlib.pyplot as plt
import pandas as pd

from .annotation import gene_id_to_symbol, read_annotation, summarize_to_genes
from .config import AnalysisConfig
from .exploratory import PCAResult
from .gene_sets import map_gene_sets, read_gene_sets
from .r_init import build_experiment, initialize_r
from .samples import build_sample_table, design_matrix

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one run produces.

    Attributes:
        gene_counts: Unfiltered genes × samples counts.
        samples: Sample table (genotype plus ``lib.size``/``norm.factors``
            once normalized).
        experiment: Filtered, normalized SummarizedExperiment carrying the
            dispersion estimates.
        design: Design matrix of the genotype model.
        log_expr: genes × samples logCPM of the filtered genes.
        pca: Principal components of ``log_expr``.
        de_results: Per-gene test results with the ``de`` flag.
        gene_sets: Gene sets mapped to detectable symbols.
        enrichment: fry results, one row per gene set.
        figures: Figure name -> written file.
    """
    gene_counts: pd.DataFrame
    samples: pd.DataFrame
    experiment: Any
    design: pd.DataFrame
    log_expr: pd.DataFrame
    pca: PCAResult
    de_results: pd.DataFrame
    gene_sets: Dict[str, List[str]]
    enrichment: pd.DataFrame
    figures: Dict[str, Path] = field(default_factory=dict)

    @property
    def n_de(self) -> int:
        return int(self.de_results["de"].sum())

    def normalization(self) -> pd.DataFrame:
        return normalization_table(self.experiment)


def load_gene_counts(config: AnalysisConfig) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Read quantifications, aggregate them to genes and build the sample table.

    Returns:
        ``(gene_counts, samples, annotation)``; gene_counts columns follow
        the sample table's index.
    """
    from .edger import read_quantification

    quant = read_quantification(
        config.quant.dir,
        quantifier=config.quant.quantifier,
        strip_versions=config.quant.strip_versions,
    )
    if config.quant.scale_by_overdispersion:
        logger.info(
            "Scaling transcript counts by overdispersion (prior %.3f)",
            quant.overdispersion_prior,
        )
        tx_counts = quant.scaled_counts()
    else:
        tx_counts = quant.counts

    annotation = read_annotation(
        config.annotation.path,
        transcript_col=config.annotation.transcript_col,
        gene_id_col=config.annotation.gene_id_col,
        gene_name_col=config.annotation.gene_name_col,
    )
    gene_counts = summarize_to_genes(tx_counts, annotation)

    samples = build_sample_table(
        quant.sample_ids,
        sample_sheet=config.samples.sheet,
        genotype_pattern=config.samples.genotype_pattern,
        reference=config.samples.reference,
    )
    return gene_counts[list(samples.index)], samples, annotation


def filter_and_normalize(
    gene_counts: pd.DataFrame,
    samples: pd.DataFrame,
    config: AnalysisConfig,
) -> Any:
    """
    Drop low-count genes and compute TMM factors on what is left.

    Library sizes are recomputed from the kept genes before TMM, and the
    resulting ``lib.size`` and ``norm.factors`` are what every later stage uses.

    Returns:
        R-initialized SummarizedExperiment of the kept genes.
    """
    from . import edger

    se = initialize_r(build_experiment(gene_counts, samples))
    group = [str(g) for g in samples.loc[list(gene_counts.columns), "genotype"]]

    if config.filter.method == "filterByExpr":
        keep = edger.filter_by_expr(se, group=group)
    else:
        keep = edger.filter_by_cpm(
            se,
            min_cpm=config.filter.min_cpm,
            min_samples=config.filter.min_samples,
            group=group,
        )
    if not keep.any():
        raise ValueError("No gene passes the expression filter")

    filtered = initialize_r(build_experiment(gene_counts.loc[keep], samples))
    logger.info("Kept %d of %d genes after filtering", int(keep.sum()), len(keep))
    return edger.calc_norm_factors(filtered, method="TMM")


def normalization_table(se: Any) -> pd.DataFrame:
    """Per-sample library size, TMM factor and effective library size."""
    coldata = se.get_column_data().to_pandas()
    table = coldata.set_index("sample") if "sample" in coldata.columns else coldata
    table.index = [str(s) for s in se.column_names]
    table.index.name = "sample"
    if {"lib.size", "norm.factors"} <= set(table.columns):
        table["effective.lib.size"] = table["lib.size"] * table["norm.factors"]
    return table


def explore(se: Any, config: AnalysisConfig) -> Tuple[pd.DataFrame, PCAResult]:
    from .exploratory import log_cpm, pca

    log_expr = log_cpm(se, prior_count=config.model.prior_count)
    return log_expr, pca(log_expr)


def de_table(lrt_table: pd.DataFrame, fdr: float = 0.05) -> pd.DataFrame:
    """Add the ``de`` flag (adjusted p-value below ``fdr``) and sort by p-value."""
    table = lrt_table.copy()
    table["de"] = table["adj_p_value"] < fdr
    return table.sort_values("p_value", kind="mergesort").reset_index(drop=True)


def test_differential_expression(
    se: Any,
    design: pd.DataFrame,
    config: AnalysisConfig,
) -> Tuple[Any, pd.DataFrame]:
    """
    Fit the genotype NB GLM and test the genotype coefficient.

    Returns:
        ``(se, de_results)``; ``se`` now carries the dispersions and the
        DGEList reused by the gene-set test.
    """
    from . import edger

    se = edger.estimate_disp(
        se, design, trend=config.model.trend, robust=config.model.robust
    )
    model = edger.glm_fit(se, design)
    results = de_table(edger.glm_lrt(model, coef=design.shape[1]), fdr=config.model.fdr)

    up = int((results["de"] & (results["log_fc"] > 0)).sum())
    down = int((results["de"] & (results["log_fc"] < 0)).sum())
    logger.info(
        "%s: %d DE genes at FDR < %s (%d up, %d down)",
        design.columns[-1], up + down, config.model.fdr, up, down,
    )
    return se, results


def _gene_set_symbols(
    gene_sets: Dict[str, List[str]],
    annotation: pd.DataFrame,
) -> Optional[pd.Series]:
    """Id -> symbol map when the sets hold gene ids, None when they already hold symbols."""
    id_to_symbol = gene_id_to_symbol(annotation)
    members = {m for ms in gene_sets.values() for m in ms}
    if members & set(id_to_symbol.index):
        return id_to_symbol
    logger.info("Gene-set members are not gene ids; using them as symbols")
    return None


def test_gene_sets(
    se: Any,
    design: pd.DataFrame,
    annotation: pd.DataFrame,
    config: AnalysisConfig,
) -> Tuple[Dict[str, List[str]], pd.DataFrame]:
    """Map the IRE gene sets onto the kept genes and run fry on the genotype contrast."""
    from . import limma

    raw_sets = read_gene_sets(config.gene_sets.path)
    mapped = map_gene_sets(
        raw_sets,
        _gene_set_symbols(raw_sets, annotation),
        universe=se.row_names,
        min_size=config.gene_sets.min_size,
    )
    if not mapped:
        raise ValueError("No gene set has enough members among the detected genes")

    enrichment = limma.fry(se, mapped, design, contrast=design.shape[1])
    for row in enrichment.itertuples():
        logger.info(
            "%s: %d genes, %s, p=%.3g, FDR=%.3g",
            row.gene_set, row.n_genes, row.direction, row.p_value, row.adj_p_value,
        )
    return mapped, enrichment


def choose_heatmap_set(enrichment: pd.DataFrame, requested: Optional[str] = None) -> str:
    """The requested set if it was tested, else the set with the smallest fry p-value."""
    tested = list(enrichment["gene_set"])
    if requested is None or requested in tested:
        return requested or tested[0]
    logger.warning(
        "Heatmap gene set '%s' was not tested (tested: %s); using %s",
        requested, ", ".join(tested), tested[0],
    )
    return tested[0]


def render_figures(result: AnalysisResult, out_dir: Path, config: AnalysisConfig) -> Dict[str, Path]:
    """Write all figures as PNG files into ``out_dir``."""
    from .plotting import enrichment_barplot, gene_set_heatmap, pca_plot, volcano_plot

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    contrast = result.design.columns[-1]
    figures: Dict[str, Path] = {}

    figures["volcano"] = out_dir / "volcano.png"
    fig = volcano_plot(
        result.de_results,
        fdr_threshold=config.model.fdr,
        title=f"Differential expression: {contrast}",
        save_path=figures["volcano"],
    )
    plt.close(fig)

    figures["pca"] = out_dir / "pca.png"
    plt.close(pca_plot(result.pca, result.samples, save_path=figures["pca"]))

    figures["enrichment"] = out_dir / "enrichment.png"
    plt.close(enrichment_barplot(
        result.enrichment, fdr_threshold=config.model.fdr, save_path=figures["enrichment"]
    ))

    heatmap_set = choose_heatmap_set(result.enrichment, config.gene_sets.heatmap_set)
    figures["heatmap"] = out_dir / "heatmap.png"
    grid = gene_set_heatmap(
        result.log_expr,
        result.gene_sets[heatmap_set],
        result.samples,
        title=heatmap_set,
        save_path=figures["heatmap"],
    )
    plt.close(grid.figure)

    return figures


def run_analysis(config: AnalysisConfig, write_outputs: bool = True) -> AnalysisResult:
    """
    Run the whole analysis described by ``config``.

    Args:
        config: Validated configuration (see ``ire_dge.config.load_config``).
        write_outputs: Render figures and write the report to
            ``config.output_dir``.

    Example:
        >>> from ire_dge.config import load_config
        >>> result = run_analysis(load_config("analysis.yaml"))
        >>> result.de_results.query("de").head()
    """
    from .report import write_report

    logger.info("Loading quantifications from %s", config.quant.dir)
    gene_counts, samples, annotation = load_gene_counts(config)

    se = filter_and_normalize(gene_counts, samples, config)
    norm = normalization_table(se)
    samples = samples.join(norm[["lib.size", "norm.factors"]])

    design = design_matrix(samples)
    log_expr, pca_result = explore(se, config)
    se, de_results = test_differential_expression(se, design, config)
    gene_sets, enrichment = test_gene_sets(se, design, annotation, config)

    result = AnalysisResult(
        gene_counts=gene_counts,
        samples=samples,
        experiment=se,
        design=design,
        log_expr=log_expr,
        pca=pca_result,
        de_results=de_results,
        gene_sets=gene_sets,
        enrichment=enrichment,
    )

    if write_outputs:
        out_dir = Path(config.output_dir)
        result.figures = render_figures(result, out_dir / "figures", config)
        write_report(result, out_dir)
        logger.info("Results written to %s", out_dir)

    return result
