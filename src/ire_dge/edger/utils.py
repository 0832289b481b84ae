from functools import lru_cache
from typing import Any, Optional
import numpy as np
import pandas as pd


@lru_cache(maxsize=1)
def _prep_edger():
    """Lazily prepare the edgeR runtime.

    Returns:
        Tuple[Any, Any]: A tuple ``(r_env, edgeR_pkg)`` where ``r_env`` is the
        lazy rpy2 environment from ``bioc2ri.lazy_r_env`` and ``edgeR_pkg`` is
        the imported R ``edgeR`` package.

    Notes:
        The result is cached (LRU) to avoid repeated imports.
    """
    from bioc2ri.lazy_r_env import get_r_environment

    r = get_r_environment()
    edger_pkg = r.lazy_import_r_packages("edgeR")
    return r, edger_pkg


def numpy_to_r_matrix(mat, rownames=None, colnames=None):
    from bioc2ri.rutils import is_r
    from bioc2ri.rnames import set_rownames, set_colnames
    from bioc2ri import numpy_plugin
    np_eng = numpy_plugin()

    rmat = np_eng.py2r(np.asarray(mat, dtype=float))
    if rownames is not None:
        if not is_r(rownames):
            rownames = np_eng.py2r(np.asarray(rownames, dtype=str))
        rmat = set_rownames(rmat, rownames)
    if colnames is not None:
        if not is_r(colnames):
            colnames = np_eng.py2r(np.asarray(colnames, dtype=str))
        rmat = set_colnames(rmat, colnames)
    return rmat


def pandas_to_r_matrix(df: pd.DataFrame):
    return numpy_to_r_matrix(
        df.to_numpy(dtype=float),
        rownames=[str(x) for x in df.index],
        colnames=[str(x) for x in df.columns],
    )


def r_matrix_to_pandas(rmat: Any) -> pd.DataFrame:
    """Convert an R matrix with dimnames into a DataFrame."""
    from ..rmatrixadapter import RMatrixAdapter

    adapter = RMatrixAdapter(rmat)
    return pd.DataFrame(
        adapter.to_numpy(),
        index=adapter.get_rownames(),
        columns=adapter.get_colnames(),
    )


def r_frame_to_pandas(rdf: Any) -> pd.DataFrame:
    """Convert an R data.frame into a DataFrame (row names become the index)."""
    r, _ = _prep_edger()
    rdf = r.ro.baseenv["as.data.frame"](rdf)
    with r.localconverter(r.default_converter + r.pandas2ri.converter):
        return r.get_conversion().rpy2py(rdf)


def r_element(obj: Any, name: str) -> Any:
    """``obj[[name]]`` in R, or None when the element is NULL."""
    r, _ = _prep_edger()
    value = r.ro.baseenv["[["](obj, name)
    if value is r.ro.NULL:
        return None
    return value


def _column_vector(se: Any, column: str) -> Optional[np.ndarray]:
    coldata = se.get_column_data()
    if coldata is None or column not in coldata.column_names:
        return None
    return np.asarray(coldata[column], dtype=float)


def make_dgelist(se: Any, assay: str = "counts", reuse_dispersion: bool = True) -> Any:
    """
    Build an edgeR DGEList from an R-initialized assay.

    Library sizes and normalization factors stored in ``column_data`` by
    ``calc_norm_factors`` are passed through, so every downstream call sees
    the same normalization. With ``reuse_dispersion`` the DGEList produced by
    ``estimate_disp`` (kept in ``se.metadata["dge"]``) is returned as-is.
    """
    from ..r_init import get_rmat

    if reuse_dispersion and se.metadata:
        dge = se.metadata.get("dge")
        if dge is not None:
            return dge

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    kwargs = {}
    lib_size = _column_vector(se, "lib.size")
    if lib_size is not None:
        kwargs["lib.size"] = r.FloatVector(lib_size)
    norm_factors = _column_vector(se, "norm.factors")
    if norm_factors is not None:
        kwargs["norm.factors"] = r.FloatVector(norm_factors)

    return pkg.DGEList(rmat, **kwargs)
