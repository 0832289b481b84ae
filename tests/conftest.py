"""Shared fixtures: synthetic counts, sample tables and an R availability gate."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def _r_available() -> bool:
    try:
        from ire_dge.r_utils import ANALYSIS_R_PACKAGES, missing_r_packages
        return not missing_r_packages(ANALYSIS_R_PACKAGES)
    except Exception:
        # rpy2 missing, or no usable R installation behind it
        return False


def pytest_collection_modifyitems(config, items):
    if _r_available():
        return
    skip_r = pytest.mark.skip(reason="rpy2 with edgeR and limma is not available")
    for item in items:
        if "requires_r" in item.keywords:
            item.add_marker(skip_r)


SAMPLE_IDS = ["wt_1", "wt_2", "wt_3", "mut_1", "mut_2", "mut_3"]


@pytest.fixture
def sample_ids():
    return list(SAMPLE_IDS)


@pytest.fixture
def mock_samples():
    """Sample table with wt as reference genotype."""
    from ire_dge.samples import build_sample_table
    return build_sample_table(SAMPLE_IDS, genotype_pattern=r"^(wt|mut)_", reference="wt")


@pytest.fixture
def mock_design(mock_samples):
    from ire_dge.samples import design_matrix
    return design_matrix(mock_samples)


@pytest.fixture
def mock_counts():
    """genes x samples counts; the first 20 genes are 3-fold up in mutants."""
    np.random.seed(42)
    n_genes = 200
    counts = np.random.negative_binomial(10, 0.1, size=(n_genes, len(SAMPLE_IDS))).astype(float)
    counts[:20, 3:] *= 3
    # undetected genes for the filters to drop
    counts[-10:, :] = 0
    genes = [f"gene{i:03d}" for i in range(n_genes)]
    return pd.DataFrame(counts, index=genes, columns=SAMPLE_IDS)


@pytest.fixture
def mock_de_results():
    np.random.seed(42)
    n = 150
    log_fc = np.random.normal(0, 1.5, n)
    p = np.random.uniform(0, 1, n)
    p[:15] = np.random.uniform(1e-10, 1e-4, 15)
    adj = np.minimum(p * n / (np.argsort(np.argsort(p)) + 1), 1.0)
    table = pd.DataFrame({
        "gene": [f"gene{i:03d}" for i in range(n)],
        "log_fc": log_fc,
        "log_cpm": np.random.uniform(0, 10, n),
        "lr_statistic": np.random.chisquare(1, n),
        "p_value": p,
        "adj_p_value": adj,
    })
    table["de"] = table["adj_p_value"] < 0.05
    return table


@pytest.fixture
def mock_enrichment():
    return pd.DataFrame({
        "gene_set": ["ire3_all", "ire5_all", "ire3_hq"],
        "n_genes": [120, 45, 30],
        "direction": ["Down", "Up", "Down"],
        "p_value": [1e-4, 0.2, 0.003],
        "adj_p_value": [3e-4, 0.2, 0.0045],
    })
