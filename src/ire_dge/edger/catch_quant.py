"""
Read transcript quantifications with edgeR::catchSalmon / edgeR::catchKallisto.

Both readers return transcript-level counts together with the per-transcript
overdispersion that edgeR estimates from the quantifier's bootstrap (or Gibbs)
resamples. Dividing counts by that overdispersion gives "scaled counts" whose
variance is comparable to ordinary gene counts.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Mapping, Union
import numpy as np

from ..quant import TranscriptQuant
from ..r_utils import QUANT_R_PACKAGES, ensure_r_dependencies
from ..samples import find_sample_dirs
from .utils import _prep_edger, r_element, r_frame_to_pandas, r_matrix_to_pandas

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _catch(fn_name: str, sample_dirs: Mapping[str, PathLike], **kwargs) -> TranscriptQuant:
    ensure_r_dependencies(QUANT_R_PACKAGES[fn_name])
    r, pkg = _prep_edger()
    sample_ids = list(sample_dirs)
    paths = r.StrVector([str(Path(p)) for p in sample_dirs.values()])

    catch = getattr(pkg, fn_name)
    res = catch(paths, verbose=False, **kwargs)

    counts = r_matrix_to_pandas(r_element(res, "counts"))
    counts.columns = sample_ids

    annotation = r_frame_to_pandas(r_element(res, "annotation"))
    prior = r_element(res, "overdispersion.prior")
    resample = r_element(res, "resample.type")

    quant = TranscriptQuant(
        counts=counts,
        annotation=annotation,
        overdispersion_prior=float(prior[0]) if prior is not None else float("nan"),
        resample_type=str(resample[0]) if resample is not None else None,
    )
    logger.info(
        "Read %d transcripts x %d samples (resampling: %s)",
        counts.shape[0], counts.shape[1], quant.resample_type,
    )
    return quant


def catch_salmon(sample_dirs: Mapping[str, PathLike], **kwargs) -> TranscriptQuant:
    """
    Read salmon output folders with ``edgeR::catchSalmon``.

    Args:
        sample_dirs: Mapping of sample id to salmon output folder
            (as returned by ``find_sample_dirs``).
        **kwargs: Additional args forwarded to the R function.

    Returns:
        TranscriptQuant with counts columns named by sample id.

    Example:
        >>> dirs = find_sample_dirs("data/salmon", "salmon")
        >>> quant = catch_salmon(dirs)
        >>> quant.scaled_counts().sum()
    """
    return _catch("catchSalmon", sample_dirs, **kwargs)


def catch_kallisto(sample_dirs: Mapping[str, PathLike], **kwargs) -> TranscriptQuant:
    """Read kallisto output folders with ``edgeR::catchKallisto``."""
    return _catch("catchKallisto", sample_dirs, **kwargs)


def read_quantification(
    quant_dir: PathLike,
    quantifier: str = "salmon",
    strip_versions: bool = False,
) -> TranscriptQuant:
    """Find the sample folders under ``quant_dir`` and read them."""
    sample_dirs = find_sample_dirs(quant_dir, quantifier)
    reader = catch_salmon if quantifier == "salmon" else catch_kallisto
    quant = reader(sample_dirs)
    if strip_versions:
        quant = quant.strip_versions()
    if (quant.counts.to_numpy() < 0).any() or np.isnan(quant.counts.to_numpy()).any():
        raise ValueError("Quantified counts contain negative or missing values")
    return quant
