"""Tests for the command-line interface."""

from types import SimpleNamespace

import pytest
import pandas as pd
import yaml
from click.testing import CliRunner

from ire_dge import workflow
from ire_dge.cli import cli


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "analysis.yaml"
    path.write_text(yaml.safe_dump({
        "quant": {"dir": "salmon"},
        "annotation": {"path": "tx2gene.tsv"},
        "samples": {"genotype_pattern": "^(wt|mut)_"},
        "gene_sets": {"path": "ire.rds"},
    }))
    return path


def test_check_config(config_file):
    result = CliRunner().invoke(cli, ["check-config", str(config_file)])
    assert result.exit_code == 0
    assert "Config OK" in result.output


def test_check_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("quant:\n  folder: salmon\n")
    result = CliRunner().invoke(cli, ["check-config", str(path)])
    assert result.exit_code == 2
    assert "folder" in result.output


def test_run_overrides_output_dir(config_file, tmp_path, monkeypatch):
    seen = {}

    def fake_run(config):
        seen["output_dir"] = config.output_dir
        return SimpleNamespace(
            experiment=SimpleNamespace(shape=(120, 6)),
            n_de=7,
            enrichment=pd.DataFrame({
                "gene_set": ["ire3_all"],
                "direction": ["Down"],
                "p_value": [0.001],
                "adj_p_value": [0.001],
            }),
        )

    monkeypatch.setattr(workflow, "run_analysis", fake_run)
    out_dir = tmp_path / "elsewhere"
    result = CliRunner().invoke(cli, ["run", str(config_file), "--out-dir", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert seen["output_dir"] == out_dir
    assert "Genes tested: 120" in result.output
    assert "ire3_all: Down" in result.output


def test_run_missing_config(tmp_path):
    result = CliRunner().invoke(cli, ["run", str(tmp_path / "absent.yaml")])
    assert result.exit_code == 2
