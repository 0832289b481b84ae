"""R package dependency checks."""

from __future__ import annotations
import logging
from typing import Sequence

logger = logging.getLogger(__name__)

# Track which packages have been checked
_checked_packages: set = set()

# Bioconductor packages the workflow calls into
ANALYSIS_R_PACKAGES = ["edgeR", "limma"]

# Suggested packages edgeR needs to read quantifier output
QUANT_R_PACKAGES = {"catchSalmon": ["jsonlite"], "catchKallisto": ["rhdf5"]}


def _import_rpy2():
    try:
        import rpy2.robjects.packages as rpackages
        from rpy2.robjects.vectors import StrVector
    except ImportError:
        raise ImportError(
            "rpy2 is not installed. Please install it via 'pip install rpy2' "
            "or use the provided conda environment."
        )
    return rpackages, StrVector


def missing_r_packages(packages: Sequence[str]) -> list[str]:
    """
    Return the subset of ``packages`` that is not installed in R.

    Raises:
        ImportError: If rpy2 is not installed.
    """
    rpackages, _ = _import_rpy2()
    return [pkg for pkg in packages if not rpackages.isinstalled(pkg)]


def ensure_r_dependencies(packages: Sequence[str], install: bool = True) -> None:
    """
    Check that R packages are installed, installing missing ones via BiocManager.

    Each package is checked at most once per process.

    Args:
        packages: R package names, e.g. ``["edgeR"]`` or ``["limma"]``.
        install: If False, raise instead of installing.

    Raises:
        ImportError: If rpy2 is not installed.
        RuntimeError: If packages are missing and ``install`` is False.

    Example:
        >>> ensure_r_dependencies(["edgeR"])
    """
    global _checked_packages

    packages_to_check = [pkg for pkg in packages if pkg not in _checked_packages]
    if not packages_to_check:
        return

    rpackages, StrVector = _import_rpy2()
    missing_pkgs = missing_r_packages(packages_to_check)

    if missing_pkgs:
        if not install:
            raise RuntimeError(f"Missing R packages: {', '.join(missing_pkgs)}")

        logger.warning("Missing R packages detected: %s", ", ".join(missing_pkgs))
        logger.info("Attempting to install via BiocManager...")

        utils = rpackages.importr("utils")
        utils.chooseCRANmirror(ind=1)

        if not rpackages.isinstalled("BiocManager"):
            utils.install_packages(StrVector(["BiocManager"]))

        bioc_manager = rpackages.importr("BiocManager")
        bioc_manager.install(StrVector(missing_pkgs), ask=False)
        logger.info("R packages installed successfully.")

    _checked_packages.update(packages_to_check)
