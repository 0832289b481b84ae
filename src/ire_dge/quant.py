"""Transcript-level quantification container."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import pandas as pd


@dataclass
class TranscriptQuant:
    """Transcript-level quantification for a set of samples.

    Attributes:
        counts: transcripts × samples DataFrame of estimated counts.
        annotation: Per-transcript DataFrame with ``Length``,
            ``EffectiveLength`` and ``Overdispersion``.
        overdispersion_prior: Prior overdispersion estimated by edgeR.
        resample_type: ``"bootstrap"``, ``"gibbs"`` or None.
    """
    counts: pd.DataFrame
    annotation: pd.DataFrame
    overdispersion_prior: float = float("nan")
    resample_type: Optional[str] = None

    @property
    def sample_ids(self) -> list:
        return list(self.counts.columns)

    def scaled_counts(self) -> pd.DataFrame:
        """Counts divided by each transcript's resampling overdispersion."""
        overdisp = self.annotation["Overdispersion"].reindex(self.counts.index)
        overdisp = overdisp.fillna(1.0).clip(lower=1.0)
        return self.counts.div(overdisp, axis=0)

    def strip_versions(self) -> "TranscriptQuant":
        """Drop ``.N`` version suffixes from transcript identifiers."""
        def strip(index: pd.Index) -> pd.Index:
            return index.str.replace(r"\.\d+$", "", regex=True)

        counts = self.counts.copy()
        counts.index = strip(counts.index.astype(str))
        annotation = self.annotation.copy()
        annotation.index = strip(annotation.index.astype(str))
        return TranscriptQuant(
            counts=counts,
            annotation=annotation,
            overdispersion_prior=self.overdispersion_prior,
            resample_type=self.resample_type,
        )
