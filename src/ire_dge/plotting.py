"""Figures for the DGE report: volcano, PCA, gene-set enrichment and heatmap."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from .exploratory import PCAResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TEXT_COLOR = "#2c3e50"
DIRECTION_COLORS = {"Up": "#e74c3c", "Down": "#3498db"}


def _save(fig: plt.Figure, save_path: Optional[PathLike], dpi: int) -> None:
    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches="tight", facecolor="white")
        logger.info("Figure saved to: %s", save_path)


def _style_axes(ax: plt.Axes) -> None:
    for spine in ax.spines.values():
        spine.set_color(TEXT_COLOR)
        spine.set_linewidth(1.2)
    ax.grid(True, alpha=0.2, linestyle=":", linewidth=0.8)
    ax.set_axisbelow(True)
    ax.tick_params(colors=TEXT_COLOR, labelsize=10)


def volcano_plot(
    results: pd.DataFrame,
    logfc_col: str = "log_fc",
    fdr_col: str = "adj_p_value",
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 0.0,
    label_top: int = 10,
    gene_col: str = "gene",
    figsize: tuple = (9, 7),
    title: str = "Volcano Plot",
    xlabel: str = "log₂(Fold Change)",
    ylabel: str = "-log₁₀(Adjusted p-value)",
    save_path: Optional[PathLike] = None,
    **kwargs
) -> plt.Figure:
    """
    Volcano plot of a DE result table.

    Args:
        results: DataFrame with differential expression results.
        logfc_col: Column name for log fold change (default: "log_fc").
        fdr_col: Column name for adjusted p-value (default: "adj_p_value").
        fdr_threshold: FDR significance threshold (default: 0.05).
        logfc_threshold: Absolute log fold change a significant gene must
            exceed (default: 0, i.e. FDR only).
        label_top: Number of most significant genes to label with their
            name. 0 disables labels.
        gene_col: Column holding gene names used for labels.
        figsize: Figure size tuple.
        title: Plot title.
        xlabel: X-axis label.
        ylabel: Y-axis label.
        save_path: Path to save figure (optional).
        **kwargs: Additional arguments for customization
            - point_size: Size of points (default: 20)
            - sig_color: Color for significant points (default: '#e74c3c')
            - nonsig_color: Color for non-significant points (default: '#95a5a6')
            - alpha: Transparency (default: 0.7)
            - dpi: DPI for saved figure (default: 300)

    Returns:
        matplotlib.figure.Figure: The figure object

    Examples:
        >>> fig = volcano_plot(de, title="mutant vs wild type")
        >>> fig = volcano_plot(de, fdr_threshold=0.01, save_path="volcano.png")
    """
    point_size = kwargs.get("point_size", 20)
    sig_color = kwargs.get("sig_color", "#e74c3c")
    nonsig_color = kwargs.get("nonsig_color", "#95a5a6")
    alpha = kwargs.get("alpha", 0.7)
    dpi = kwargs.get("dpi", 300)

    for col in (logfc_col, fdr_col):
        if col not in results.columns:
            raise KeyError(f"Column '{col}' not found in results")

    df = results.copy()
    # p-values of exactly 0 would map to infinity
    floor = np.nextafter(0, 1)
    df["neg_log10_fdr"] = -np.log10(df[fdr_col].clip(lower=floor))

    sig_mask = (df[fdr_col] < fdr_threshold) & (np.abs(df[logfc_col]) > logfc_threshold)

    fig, ax = plt.subplots(figsize=figsize, dpi=100)

    non_sig = df[~sig_mask]
    ax.scatter(
        non_sig[logfc_col],
        non_sig["neg_log10_fdr"],
        s=point_size,
        color=nonsig_color,
        alpha=alpha * 0.5,
        edgecolors="none",
        label="Not significant",
        zorder=1,
    )

    sig = df[sig_mask]
    sig_label = f"FDR < {fdr_threshold}"
    if logfc_threshold > 0:
        sig_label += f", |logFC| > {logfc_threshold}"
    ax.scatter(
        sig[logfc_col],
        sig["neg_log10_fdr"],
        s=point_size * 1.3,
        color=sig_color,
        alpha=alpha,
        edgecolors="white",
        linewidth=0.5,
        label=sig_label,
        zorder=2,
    )

    if logfc_threshold > 0:
        for x in (-logfc_threshold, logfc_threshold):
            ax.axvline(x, color="#34495e", linestyle="--", linewidth=1.2, alpha=0.6, zorder=0)
    ax.axhline(-np.log10(fdr_threshold), color="#34495e", linestyle="--", linewidth=1.2, alpha=0.6, zorder=0)

    if label_top and gene_col in df.columns:
        for _, row in df.loc[sig_mask].nsmallest(label_top, fdr_col).iterrows():
            ax.annotate(
                str(row[gene_col]),
                (row[logfc_col], row["neg_log10_fdr"]),
                xytext=(3, 3),
                textcoords="offset points",
                fontsize=8,
                color=TEXT_COLOR,
            )

    ax.set_xlabel(xlabel, fontsize=12, fontweight="bold", color=TEXT_COLOR)
    ax.set_ylabel(ylabel, fontsize=12, fontweight="bold", color=TEXT_COLOR)
    ax.set_title(title, fontsize=14, fontweight="bold", color=TEXT_COLOR, pad=15)
    _style_axes(ax)
    ax.legend(loc="upper right", frameon=True, fontsize=9, framealpha=0.95)

    n_up = int((sig_mask & (df[logfc_col] > 0)).sum())
    n_down = int((sig_mask & (df[logfc_col] < 0)).sum())
    ax.text(
        0.02, 0.98,
        f"Significant: {int(sig_mask.sum())}/{len(df)}\nUp: {n_up}\nDown: {n_down}",
        transform=ax.transAxes,
        fontsize=9,
        verticalalignment="top",
        bbox=dict(boxstyle="round", facecolor="white", alpha=0.85, edgecolor=TEXT_COLOR),
        family="monospace",
        color=TEXT_COLOR,
    )

    fig.tight_layout()
    _save(fig, save_path, dpi)
    return fig


def pca_plot(
    pca_result: PCAResult,
    samples: pd.DataFrame,
    color_by: str = "genotype",
    pcs: Sequence[str] = ("PC1", "PC2"),
    figsize: tuple = (7, 6),
    title: str = "PCA of logCPM",
    save_path: Optional[PathLike] = None,
    dpi: int = 300,
) -> plt.Figure:
    """Scatter of sample scores on two principal components, coloured by a sample column."""
    pc_x, pc_y = pcs
    for pc in pcs:
        if pc not in pca_result.scores.columns:
            raise KeyError(f"{pc} not computed; available: {list(pca_result.scores.columns)}")
    if color_by not in samples.columns:
        raise KeyError(f"Column '{color_by}' not found in sample table")

    data = pca_result.scores[[pc_x, pc_y]].join(samples[[color_by]])
    data["label"] = [str(s) for s in data.index]

    fig, ax = plt.subplots(figsize=figsize, dpi=100)
    sns.scatterplot(data=data, x=pc_x, y=pc_y, hue=color_by, s=90, ax=ax, edgecolor="white")
    for _, row in data.iterrows():
        ax.annotate(
            row["label"], (row[pc_x], row[pc_y]),
            xytext=(4, 4), textcoords="offset points", fontsize=8, color=TEXT_COLOR,
        )

    ax.set_xlabel(pca_result.axis_label(pc_x), color=TEXT_COLOR)
    ax.set_ylabel(pca_result.axis_label(pc_y), color=TEXT_COLOR)
    ax.set_title(title, fontsize=13, fontweight="bold", color=TEXT_COLOR)
    _style_axes(ax)

    fig.tight_layout()
    _save(fig, save_path, dpi)
    return fig


def enrichment_barplot(
    enrichment: pd.DataFrame,
    fdr_threshold: float = 0.05,
    figsize: Optional[tuple] = None,
    title: str = "IRE gene-set enrichment (fry)",
    save_path: Optional[PathLike] = None,
    dpi: int = 300,
) -> plt.Figure:
    """
    Horizontal bars of -log10(p) per gene set, coloured by direction.

    The dashed line marks the largest p-value still passing ``fdr_threshold``
    after adjustment; it is omitted when no set passes.
    """
    for col in ("gene_set", "direction", "p_value", "adj_p_value"):
        if col not in enrichment.columns:
            raise KeyError(f"Column '{col}' not found in enrichment table")
    if enrichment.empty:
        raise ValueError("Enrichment table is empty")

    df = enrichment.sort_values("p_value", ascending=False).copy()
    df["neg_log10_p"] = -np.log10(df["p_value"].clip(lower=np.nextafter(0, 1)))
    colors = [DIRECTION_COLORS.get(d, "#95a5a6") for d in df["direction"]]

    if figsize is None:
        figsize = (7, 1.5 + 0.5 * len(df))
    fig, ax = plt.subplots(figsize=figsize, dpi=100)
    ax.barh(df["gene_set"], df["neg_log10_p"], color=colors, edgecolor="white")

    passing = df.loc[df["adj_p_value"] < fdr_threshold, "p_value"]
    if not passing.empty:
        ax.axvline(
            -np.log10(passing.max()), color="#34495e", linestyle="--", linewidth=1.2,
            label=f"FDR < {fdr_threshold}",
        )

    handles = [
        plt.Rectangle((0, 0), 1, 1, color=c, label=d)
        for d, c in DIRECTION_COLORS.items() if d in set(df["direction"])
    ]
    extra, _ = ax.get_legend_handles_labels()
    ax.legend(handles=handles + extra, loc="lower right", fontsize=9)

    ax.set_xlabel("-log₁₀(p-value)", color=TEXT_COLOR)
    ax.set_title(title, fontsize=13, fontweight="bold", color=TEXT_COLOR)
    _style_axes(ax)

    fig.tight_layout()
    _save(fig, save_path, dpi)
    return fig


def gene_set_heatmap(
    log_expr: pd.DataFrame,
    genes: Sequence[str],
    samples: pd.DataFrame,
    z_score: bool = True,
    annotate_by: str = "genotype",
    title: Optional[str] = None,
    save_path: Optional[PathLike] = None,
    dpi: int = 300,
) -> sns.matrix.ClusterGrid:
    """
    Clustered heatmap of one gene set's logCPM, samples annotated by genotype.

    Args:
        log_expr: genes × samples logCPM table.
        genes: Members of the gene set; genes absent from ``log_expr`` are skipped.
        samples: Sample table indexed by sample id.
        z_score: Scale each gene to mean 0 and unit variance.
        annotate_by: Sample column shown as a colour bar over the columns.

    Returns:
        seaborn ClusterGrid.

    Raises:
        ValueError: If none of the genes are in ``log_expr``.
    """
    present = [g for g in genes if g in log_expr.index]
    if not present:
        raise ValueError("No gene of the set is present in the expression table")

    data = log_expr.loc[present]
    # constant rows cannot be z-scored
    if z_score:
        data = data.loc[data.std(axis=1) > 0]
        if data.empty:
            raise ValueError("All genes of the set have constant expression")

    col_colors = None
    if annotate_by in samples.columns:
        groups = samples.loc[data.columns, annotate_by].astype(str)
        palette = dict(zip(sorted(groups.unique()), sns.color_palette("Set2")))
        col_colors = groups.map(palette)

    grid = sns.clustermap(
        data,
        z_score=0 if z_score else None,
        cmap="vlag",
        center=0 if z_score else None,
        col_colors=col_colors,
        row_cluster=len(data) > 1,
        col_cluster=data.shape[1] > 1,
        yticklabels=len(data) <= 60,
        figsize=(max(6, 0.5 * data.shape[1] + 3), max(4, 0.18 * len(data) + 3)),
    )
    if title:
        grid.figure.suptitle(title, fontsize=13, fontweight="bold", color=TEXT_COLOR, y=1.02)

    _save(grid.figure, save_path, dpi)
    return grid
