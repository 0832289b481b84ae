"""Write result tables and a static HTML summary of an analysis run."""

from __future__ import annotations
import html
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Union

if TYPE_CHECKING:
    from .workflow import AnalysisResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FIGURE_TITLES = {
    "volcano": "Volcano plot",
    "pca": "PCA of logCPM",
    "enrichment": "IRE gene-set enrichment",
    "heatmap": "Gene-set heatmap",
}

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 2em; color: #2c3e50; }}
table {{ border-collapse: collapse; font-size: 0.9em; }}
th, td {{ border: 1px solid #ccc; padding: 3px 8px; text-align: right; }}
img {{ max-width: 800px; display: block; margin-bottom: 1.5em; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>{summary}</p>
<h2>Samples and normalization</h2>
{normalization}
<h2>Gene-set enrichment (fry)</h2>
{enrichment}
<h2>Top differentially expressed genes</h2>
{top_genes}
<h2>Figures</h2>
{figures}
</body>
</html>
"""


def write_tables(result: "AnalysisResult", out_dir: PathLike) -> Dict[str, Path]:
    """Write ``de_results.csv``, ``enrichment.csv`` and ``normalization.csv``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "de_results": out_dir / "de_results.csv",
        "enrichment": out_dir / "enrichment.csv",
        "normalization": out_dir / "normalization.csv",
    }
    result.de_results.to_csv(tables["de_results"], index=False)
    enrichment = result.enrichment.copy()
    enrichment["genes"] = [";".join(result.gene_sets.get(s, [])) for s in enrichment["gene_set"]]
    enrichment.to_csv(tables["enrichment"], index=False)
    result.normalization().to_csv(tables["normalization"])
    return tables


def write_report(
    result: "AnalysisResult",
    out_dir: PathLike,
    title: str = "IRE differential expression report",
    n_top: int = 25,
) -> Path:
    """
    Write the result tables and ``report.html`` into ``out_dir``.

    Figures already listed in ``result.figures`` are linked by relative path.

    Returns:
        Path of the HTML report.
    """
    out_dir = Path(out_dir)
    write_tables(result, out_dir)

    contrast = result.design.columns[-1]
    summary = (
        f"{result.experiment.shape[0]} genes tested in {result.experiment.shape[1]} samples "
        f"(of {result.gene_counts.shape[0]} quantified). "
        f"Coefficient <b>{html.escape(str(contrast))}</b>: {result.n_de} genes at FDR below the threshold. "
        f"{len(result.gene_sets)} gene sets tested."
    )

    float_format = "{:.4g}".format
    top_genes = result.de_results.head(n_top)
    figures = "\n".join(
        f"<h3>{FIGURE_TITLES.get(name, name)}</h3>\n"
        f'<img src="{html.escape(Path(os.path.relpath(path, out_dir)).as_posix())}" alt="{name}">'
        for name, path in result.figures.items()
    )

    page = _TEMPLATE.format(
        title=html.escape(title),
        summary=summary,
        normalization=result.normalization().to_html(float_format=float_format),
        enrichment=result.enrichment.to_html(index=False, float_format=float_format),
        top_genes=top_genes.to_html(index=False, float_format=float_format),
        figures=figures or "<p>No figures rendered.</p>",
    )

    report_path = out_dir / "report.html"
    report_path.write_text(page, encoding="utf-8")
    logger.info("Report written to %s", report_path)
    return report_path
