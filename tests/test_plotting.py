"""Tests for the report figures (Agg backend, synthetic data)."""

import pytest
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from ire_dge.exploratory import PCAResult
from ire_dge.plotting import enrichment_barplot, gene_set_heatmap, pca_plot, volcano_plot


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def mock_log_expr(mock_counts):
    return np.log2(mock_counts + 1)


@pytest.fixture
def mock_pca(sample_ids):
    np.random.seed(42)
    scores = pd.DataFrame(
        np.random.normal(size=(6, 3)), index=sample_ids, columns=["PC1", "PC2", "PC3"]
    )
    variance = pd.Series([0.6, 0.3, 0.1], index=["PC1", "PC2", "PC3"])
    loadings = pd.DataFrame(np.random.normal(size=(10, 3)), columns=["PC1", "PC2", "PC3"])
    return PCAResult(scores=scores, variance_explained=variance, loadings=loadings)


class TestVolcanoPlot:

    def test_returns_figure(self, mock_de_results):
        fig = volcano_plot(mock_de_results)
        assert isinstance(fig, plt.Figure)
        ax = fig.axes[0]
        assert ax.get_xlabel() == "log₂(Fold Change)"

    def test_labels_top_genes(self, mock_de_results):
        fig = volcano_plot(mock_de_results, label_top=5)
        labels = {t.get_text() for t in fig.axes[0].texts}
        top = mock_de_results[mock_de_results["adj_p_value"] < 0.05].nsmallest(5, "adj_p_value")
        assert set(top["gene"]) <= labels

    def test_zero_p_values(self, mock_de_results):
        results = mock_de_results.copy()
        results.loc[0, "adj_p_value"] = 0.0
        fig = volcano_plot(results)
        assert isinstance(fig, plt.Figure)

    def test_saves(self, mock_de_results, tmp_path):
        path = tmp_path / "volcano.png"
        volcano_plot(mock_de_results, save_path=path, dpi=50)
        assert path.exists()

    def test_missing_column(self, mock_de_results):
        with pytest.raises(KeyError):
            volcano_plot(mock_de_results.drop(columns="log_fc"))


class TestPcaPlot:

    def test_axis_labels_show_variance(self, mock_pca, mock_samples):
        fig = pca_plot(mock_pca, mock_samples)
        ax = fig.axes[0]
        assert ax.get_xlabel() == "PC1 (60.0%)"
        assert ax.get_ylabel() == "PC2 (30.0%)"

    def test_other_components(self, mock_pca, mock_samples):
        fig = pca_plot(mock_pca, mock_samples, pcs=("PC2", "PC3"))
        assert fig.axes[0].get_xlabel().startswith("PC2")

    def test_unknown_component(self, mock_pca, mock_samples):
        with pytest.raises(KeyError):
            pca_plot(mock_pca, mock_samples, pcs=("PC1", "PC7"))

    def test_unknown_colour_column(self, mock_pca, mock_samples):
        with pytest.raises(KeyError):
            pca_plot(mock_pca, mock_samples, color_by="batch")


class TestEnrichmentBarplot:

    def test_one_bar_per_set(self, mock_enrichment):
        fig = enrichment_barplot(mock_enrichment)
        assert len(fig.axes[0].patches) == len(mock_enrichment)

    def test_saves(self, mock_enrichment, tmp_path):
        path = tmp_path / "enrichment.png"
        enrichment_barplot(mock_enrichment, save_path=path, dpi=50)
        assert path.exists()

    def test_nothing_significant(self, mock_enrichment):
        table = mock_enrichment.assign(adj_p_value=0.9)
        fig = enrichment_barplot(table)
        assert not fig.axes[0].lines

    def test_empty(self, mock_enrichment):
        with pytest.raises(ValueError):
            enrichment_barplot(mock_enrichment.iloc[0:0])


class TestGeneSetHeatmap:

    def test_clustermap(self, mock_log_expr, mock_samples):
        genes = list(mock_log_expr.index[:25])
        grid = gene_set_heatmap(mock_log_expr, genes, mock_samples, title="ire3_all")
        assert grid.data2d.shape == (25, 6)

    def test_z_scored_rows(self, mock_log_expr, mock_samples):
        genes = list(mock_log_expr.index[:10])
        grid = gene_set_heatmap(mock_log_expr, genes, mock_samples)
        np.testing.assert_allclose(grid.data2d.mean(axis=1), 0, atol=1e-10)

    def test_unknown_genes_skipped(self, mock_log_expr, mock_samples):
        genes = list(mock_log_expr.index[:5]) + ["not_a_gene"]
        grid = gene_set_heatmap(mock_log_expr, genes, mock_samples)
        assert grid.data2d.shape[0] == 5

    def test_empty_set(self, mock_log_expr, mock_samples):
        with pytest.raises(ValueError):
            gene_set_heatmap(mock_log_expr, ["not_a_gene"], mock_samples)
