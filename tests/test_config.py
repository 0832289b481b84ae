"""Tests for YAML configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from ire_dge.config import AnalysisConfig, config_from_dict, load_config

MINIMAL = {
    "quant": {"dir": "salmon"},
    "annotation": {"path": "ref/tx2gene.tsv"},
    "samples": {"genotype_pattern": "^(wt|mut)_", "reference": "wt"},
    "gene_sets": {"path": "ref/ire.rds"},
}


def write_yaml(tmp_path, data):
    path = tmp_path / "analysis.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadConfig:

    def test_defaults(self, tmp_path):
        config = load_config(write_yaml(tmp_path, MINIMAL))
        assert isinstance(config, AnalysisConfig)
        assert config.quant.quantifier == "salmon"
        assert config.quant.scale_by_overdispersion is True
        assert config.filter.method == "cpm"
        assert config.filter.min_samples is None
        assert config.model.fdr == 0.05
        assert config.model.trend == "locfit"
        assert config.model.prior_count == 2.0
        assert config.gene_sets.heatmap_set is None

    def test_relative_paths_resolved_against_config_dir(self, tmp_path):
        config = load_config(write_yaml(tmp_path, MINIMAL))
        base = tmp_path.resolve()
        assert config.quant.dir == base / "salmon"
        assert config.annotation.path == base / "ref" / "tx2gene.tsv"
        assert config.gene_sets.path == base / "ref" / "ire.rds"
        assert config.output_dir == base / "results"

    def test_absolute_paths_kept(self, tmp_path):
        data = dict(MINIMAL, quant={"dir": str(tmp_path / "abs")})
        config = config_from_dict(data, base_dir="/elsewhere")
        assert config.quant.dir == tmp_path / "abs"

    def test_overrides(self, tmp_path):
        data = dict(
            MINIMAL,
            filter={"method": "filterByExpr"},
            model={"fdr": 0.1, "robust": True},
            output_dir="out",
        )
        config = load_config(write_yaml(tmp_path, data))
        assert config.filter.method == "filterByExpr"
        assert config.model.fdr == 0.1
        assert config.model.robust is True
        assert config.output_dir == tmp_path.resolve() / "out"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidation:

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown config sections"):
            config_from_dict(dict(MINIMAL, plots={}))

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="min_count"):
            config_from_dict(dict(MINIMAL, filter={"min_count": 10}))

    def test_missing_required_paths(self):
        with pytest.raises(ValueError, match="annotation.path"):
            config_from_dict({k: v for k, v in MINIMAL.items() if k != "annotation"})

    @pytest.mark.parametrize("section, values", [
        ("quant", {"dir": "salmon", "quantifier": "rsem"}),
        ("filter", {"method": "edgeR"}),
        ("model", {"trend": "spline"}),
        ("model", {"fdr": 1.5}),
        ("gene_sets", {"path": "x.rds", "min_size": 0}),
    ])
    def test_bad_values(self, section, values):
        with pytest.raises(ValueError):
            config_from_dict(dict(MINIMAL, **{section: values}))

    def test_needs_genotype_source(self):
        with pytest.raises(ValueError, match="genotype_pattern"):
            config_from_dict(dict(MINIMAL, samples={"reference": "wt"}))

    @pytest.mark.parametrize("section, values, key", [
        ("model", {"fdr": "0.05"}, "model.fdr"),
        ("model", {"robust": "yes"}, "model.robust"),
        ("filter", {"min_cpm": "1"}, "filter.min_cpm"),
        ("filter", {"min_samples": 2.5}, "filter.min_samples"),
        ("gene_sets", {"path": "x.rds", "min_size": True}, "gene_sets.min_size"),
    ])
    def test_wrong_types(self, section, values, key):
        with pytest.raises(ValueError, match=key):
            config_from_dict(dict(MINIMAL, **{section: values}))

    def test_empty_output_dir(self, tmp_path):
        path = tmp_path / "analysis.yaml"
        path.write_text(yaml.safe_dump(MINIMAL) + "output_dir:\n")
        with pytest.raises(ValueError, match="output_dir"):
            load_config(path)

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            config_from_dict(dict(MINIMAL, model=[1, 2]))


def test_example_config_loads():
    example = Path(__file__).resolve().parents[1] / "examples" / "analysis.yaml"
    config = load_config(example)
    assert config.gene_sets.heatmap_set == "ire3_all"
    assert config.samples.reference == "wt"
