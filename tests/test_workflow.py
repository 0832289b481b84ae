"""Tests for the analysis stages.

Table helpers are tested on synthetic data; the R-backed stages run
end-to-end on simulated counts when edgeR and limma are available.
"""

import logging

import pytest
import numpy as np
import pandas as pd

from ire_dge import workflow
from ire_dge.annotation import gene_id_to_symbol
from ire_dge.config import config_from_dict
from ire_dge.r_init import build_experiment


@pytest.fixture
def mock_annotation(mock_counts):
    genes = list(mock_counts.index)
    return pd.DataFrame({
        "transcript_id": [f"T{i}" for i in range(len(genes))],
        "gene_id": [f"ENSDARG{i:05d}" for i in range(len(genes))],
        "gene_name": genes,
    })


@pytest.fixture
def gmt_path(tmp_path, mock_annotation):
    ids = list(mock_annotation["gene_id"])
    path = tmp_path / "ire.gmt"
    path.write_text(
        "ire3_all\tshifted\t" + "\t".join(ids[:25]) + "\n"
        "ire5_all\tbackground\t" + "\t".join(ids[100:130]) + "\n"
        "ire_rare\tundetected\t" + "\t".join(ids[-10:]) + "\n"
    )
    return path


@pytest.fixture
def mock_config(tmp_path, gmt_path):
    return config_from_dict(
        {
            "quant": {"dir": "salmon"},
            "annotation": {"path": "tx2gene.tsv"},
            "samples": {"genotype_pattern": "^(wt|mut)_", "reference": "wt"},
            "gene_sets": {"path": str(gmt_path), "min_size": 3},
            "output_dir": "results",
        },
        base_dir=tmp_path,
    )


class TestDeTable:

    def test_flag_and_order(self):
        lrt = pd.DataFrame({
            "gene": ["a", "b", "c"],
            "log_fc": [1.0, -2.0, 0.1],
            "p_value": [0.01, 0.0001, 0.5],
            "adj_p_value": [0.03, 0.0003, 0.5],
        })
        table = workflow.de_table(lrt, fdr=0.05)
        assert list(table["gene"]) == ["b", "a", "c"]
        assert list(table["de"]) == [True, True, False]

    def test_threshold_is_strict(self):
        lrt = pd.DataFrame({"gene": ["a"], "p_value": [0.01], "adj_p_value": [0.05]})
        assert not workflow.de_table(lrt, fdr=0.05)["de"].iloc[0]


def test_normalization_table(mock_counts, mock_samples):
    se = build_experiment(mock_counts, mock_samples)
    coldata = se.get_column_data()
    coldata = coldata.set_column("lib.size", np.full(6, 1e6))
    coldata = coldata.set_column("norm.factors", np.array([1.0, 1.2, 0.8, 1.0, 1.0, 1.0]))
    table = workflow.normalization_table(se.set_column_data(coldata))

    assert table.index.name == "sample"
    assert list(table.index) == list(mock_counts.columns)
    assert table.loc["wt_2", "effective.lib.size"] == pytest.approx(1.2e6)
    assert table.loc["mut_1", "genotype"] == "mut"


class TestGeneSetSymbols:

    def test_ids_are_mapped(self, mock_annotation):
        sets = {"s": ["ENSDARG00001", "ENSDARG00002"]}
        mapping = workflow._gene_set_symbols(sets, mock_annotation)
        pd.testing.assert_series_equal(mapping, gene_id_to_symbol(mock_annotation))

    def test_symbols_used_as_is(self, mock_annotation, caplog):
        with caplog.at_level(logging.INFO, logger="ire_dge.workflow"):
            mapping = workflow._gene_set_symbols({"s": ["gene001"]}, mock_annotation)
        assert mapping is None
        assert "using them as symbols" in caplog.text


class TestChooseHeatmapSet:

    def test_requested_set(self, mock_enrichment):
        assert workflow.choose_heatmap_set(mock_enrichment, "ire5_all") == "ire5_all"

    def test_default_is_top_set(self, mock_enrichment):
        assert workflow.choose_heatmap_set(mock_enrichment) == "ire3_all"

    def test_untested_set_falls_back(self, mock_enrichment, caplog):
        with caplog.at_level(logging.WARNING, logger="ire_dge.workflow"):
            chosen = workflow.choose_heatmap_set(mock_enrichment, "ire_rare")
        assert chosen == "ire3_all"
        assert "ire_rare" in caplog.text


@pytest.mark.requires_r
class TestStagesWithR:

    @pytest.fixture
    def normalized(self, mock_counts, mock_samples, mock_config):
        return workflow.filter_and_normalize(mock_counts, mock_samples, mock_config)

    def test_filter_and_normalize(self, normalized, mock_counts):
        # undetected genes are filtered out
        assert normalized.shape[0] < mock_counts.shape[0]
        assert normalized.shape[1] == 6
        assert not set(mock_counts.index[-10:]) & set(normalized.row_names)
        table = workflow.normalization_table(normalized)
        filtered = mock_counts.loc[list(normalized.row_names)]
        np.testing.assert_allclose(table["lib.size"], filtered.sum().to_numpy())
        assert np.prod(table["norm.factors"]) == pytest.approx(1.0, rel=1e-6)

    def test_filter_by_expr_method(self, mock_counts, mock_samples, mock_config):
        mock_config.filter.method = "filterByExpr"
        se = workflow.filter_and_normalize(mock_counts, mock_samples, mock_config)
        assert 0 < se.shape[0] < mock_counts.shape[0]

    def test_explore(self, normalized, mock_config):
        log_expr, pca = workflow.explore(normalized, mock_config)
        assert log_expr.shape == normalized.shape
        assert list(pca.scores.index) == list(normalized.column_names)
        assert pca.variance_explained.sum() == pytest.approx(1.0)

    def test_de_and_gene_sets(
        self, normalized, mock_counts, mock_samples, mock_design, mock_annotation, mock_config, tmp_path
    ):
        se, de = workflow.test_differential_expression(normalized, mock_design, mock_config)
        assert set(de["gene"]) <= set(normalized.row_names)
        assert de["p_value"].is_monotonic_increasing
        # the simulated 3-fold genes dominate the top of the table
        top = set(de.head(20)["gene"])
        assert len(top & {f"gene{i:03d}" for i in range(20)}) >= 10
        assert (de.loc[de["de"], "adj_p_value"] < 0.05).all()

        gene_sets, enrichment = workflow.test_gene_sets(se, mock_design, mock_annotation, mock_config)
        assert "ire_rare" not in gene_sets
        for members in gene_sets.values():
            assert set(members) <= set(se.row_names)
        assert enrichment.iloc[0]["gene_set"] == "ire3_all"
        assert enrichment.iloc[0]["direction"] == "Up"

        log_expr, pca = workflow.explore(normalized, mock_config)
        result = workflow.AnalysisResult(
            gene_counts=mock_counts, samples=mock_samples, experiment=se, design=mock_design,
            log_expr=log_expr, pca=pca, de_results=de, gene_sets=gene_sets,
            enrichment=enrichment,
        )
        figures = workflow.render_figures(result, tmp_path / "figures", mock_config)
        assert set(figures) == {"volcano", "pca", "enrichment", "heatmap"}
        for path in figures.values():
            assert path.exists()


@pytest.mark.requires_r
class TestRunAnalysis:

    @pytest.fixture
    def run_config(self, tmp_path, mock_counts, mock_annotation, gmt_path, sample_ids, monkeypatch):
        from ire_dge.edger import catch_quant
        from ire_dge.quant import TranscriptQuant

        for sample in sample_ids:
            (tmp_path / "salmon" / sample).mkdir(parents=True)
            (tmp_path / "salmon" / sample / "quant.sf").write_text("")
        mock_annotation.to_csv(tmp_path / "tx2gene.tsv", sep="\t", index=False)

        tx_counts = mock_counts.copy()
        tx_counts.index = list(mock_annotation["transcript_id"])

        def catch(sample_dirs, **kwargs):
            counts = tx_counts[list(sample_dirs)]
            annotation = pd.DataFrame({"Overdispersion": 1.0}, index=counts.index)
            return TranscriptQuant(counts, annotation, 1.0, "bootstrap")

        monkeypatch.setattr(catch_quant, "catch_salmon", catch)
        return config_from_dict(
            {
                "quant": {"dir": "salmon"},
                "annotation": {"path": "tx2gene.tsv"},
                "samples": {"genotype_pattern": "^(wt|mut)_", "reference": "wt"},
                # ire_rare is dropped by min_size; the heatmap falls back to the top set
                "gene_sets": {"path": str(gmt_path), "min_size": 3, "heatmap_set": "ire_rare"},
                "output_dir": "results",
            },
            base_dir=tmp_path,
        )

    def test_writes_report_tables_and_figures(self, run_config, tmp_path, mock_counts):
        result = workflow.run_analysis(run_config)

        out_dir = tmp_path / "results"
        for name in ["report.html", "de_results.csv", "enrichment.csv", "normalization.csv"]:
            assert (out_dir / name).exists(), name
        for name in ["volcano", "pca", "enrichment", "heatmap"]:
            assert (out_dir / "figures" / f"{name}.png").exists(), name
        assert set(result.figures) == {"volcano", "pca", "enrichment", "heatmap"}

        # gene-level counts keyed by symbol, columns in sample-table order
        assert list(result.gene_counts.columns) == list(result.samples.index)
        pd.testing.assert_frame_equal(
            result.gene_counts.loc[mock_counts.index, list(mock_counts.columns)],
            mock_counts,
            check_names=False,
        )
        assert {"lib.size", "norm.factors"} <= set(result.samples.columns)
        assert result.enrichment.iloc[0]["gene_set"] == "ire3_all"

        de = pd.read_csv(out_dir / "de_results.csv")
        assert len(de) == result.experiment.shape[0]

    def test_no_outputs(self, run_config, tmp_path):
        workflow.run_analysis(run_config, write_outputs=False)
        assert not (tmp_path / "results").exists()
