"""
RMatrixAdapter: a numpy array-compatible view of an R matrix.

The adapter lets an R matrix (for example the counts handed to edgeR) live
inside a BiocPy SummarizedExperiment as an assay. numpy reads it through
``__array__``; the data itself stays in R until it is explicitly converted.
"""

from __future__ import annotations
from typing import Any, Optional, Union
import numpy as np
from numpy.typing import NDArray

NumericArray = NDArray[Union[np.integer, np.floating]]


def _get_r_environment():
    """Get the R environment lazily."""
    from bioc2ri.lazy_r_env import get_r_environment
    return get_r_environment()


def _r_dim(rmat: Any) -> tuple[int, ...]:
    from bioc2ri.rutils import r_dim
    return tuple(int(x) for x in r_dim(rmat))


class RMatrixAdapter:
    """
    A numpy-compatible wrapper around an R matrix via rpy2.

    Attributes:
        _rmat: The underlying rpy2 R matrix object.
        _shape: Cached tuple of dimensions.
        _r: The bioc2ri/rpy2 environment.

    Example:
        >>> adapter = RMatrixAdapter(r_matrix)
        >>> adapter.shape
        (100, 6)
        >>> np.asarray(adapter)
        array([[...]])
    """

    __slots__ = ("_rmat", "_shape", "_r", "_dtype_cache")

    def __init__(self, rmat: Any, r_manager: Optional[Any] = None) -> None:
        self._rmat = rmat
        self._r = r_manager if r_manager is not None else _get_r_environment()
        self._shape = _r_dim(rmat)
        self._dtype_cache: Optional[np.dtype] = None

    @property
    def rmat(self) -> Any:
        """The underlying R matrix object (read-only)."""
        return self._rmat

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        if self._dtype_cache is None:
            self._dtype_cache = self.to_numpy().dtype
        return self._dtype_cache

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_numpy(self) -> NumericArray:
        """Convert the R matrix to a dense NumPy array."""
        with self._r.localconverter(
            self._r.default_converter + self._r.numpy2ri.converter
        ):
            return np.asarray(self._r.get_conversion().rpy2py(self._rmat))

    def __array__(self, dtype: Any = None, copy: Any = None) -> NumericArray:
        arr = self.to_numpy()
        if dtype is not None:
            arr = arr.astype(dtype, copy=False)
        return arr

    def __repr__(self) -> str:
        return f"<RMatrixAdapter shape={self._shape} dtype={self.dtype}>"

    # =========================================================================
    # Dimnames
    # =========================================================================

    def _dimnames(self, fn: str) -> Optional[list[str]]:
        names = self._r.ro.baseenv[fn](self._rmat)
        if names is self._r.ro.NULL or len(names) == 0:
            return None
        return [str(x) for x in names]

    def get_rownames(self) -> Optional[list[str]]:
        """R row names, or None when the matrix has none."""
        return self._dimnames("rownames")

    def get_colnames(self) -> Optional[list[str]]:
        """R column names, or None when the matrix has none."""
        return self._dimnames("colnames")
