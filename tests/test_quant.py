"""Tests for the transcript quantification container."""

import numpy as np
import pandas as pd

from ire_dge.quant import TranscriptQuant


def make_quant():
    counts = pd.DataFrame(
        {"wt_1": [100.0, 40.0, 8.0], "mut_1": [50.0, 20.0, 0.0]},
        index=["ENSDART01.3", "ENSDART02.1", "ENSDART03"],
    )
    annotation = pd.DataFrame(
        {
            "Length": [1500, 900, 400],
            "EffectiveLength": [1300.5, 720.1, 250.0],
            "Overdispersion": [4.0, 0.5, np.nan],
        },
        index=counts.index,
    )
    return TranscriptQuant(counts, annotation, overdispersion_prior=2.5, resample_type="bootstrap")


class TestTranscriptQuant:

    def test_sample_ids(self):
        assert make_quant().sample_ids == ["wt_1", "mut_1"]

    def test_scaled_counts(self):
        scaled = make_quant().scaled_counts()
        assert scaled.loc["ENSDART01.3", "wt_1"] == 25.0
        # overdispersion below 1 or missing leaves counts unscaled
        assert scaled.loc["ENSDART02.1", "mut_1"] == 20.0
        assert scaled.loc["ENSDART03", "wt_1"] == 8.0

    def test_scaled_counts_keep_original(self):
        quant = make_quant()
        quant.scaled_counts()
        assert quant.counts.loc["ENSDART01.3", "wt_1"] == 100.0

    def test_strip_versions(self):
        quant = make_quant()
        stripped = quant.strip_versions()
        assert list(stripped.counts.index) == ["ENSDART01", "ENSDART02", "ENSDART03"]
        assert list(stripped.annotation.index) == ["ENSDART01", "ENSDART02", "ENSDART03"]
        assert stripped.overdispersion_prior == 2.5
        assert stripped.resample_type == "bootstrap"
        # original untouched
        assert quant.counts.index[0] == "ENSDART01.3"
