"""
Run configuration, loaded from a YAML file.

Example file::

    quant:
      dir: salmon/
      quantifier: salmon
    annotation:
      path: reference/tx2gene.tsv
    samples:
      genotype_pattern: "^(wt|mut)_"
      reference: wt
    gene_sets:
      path: reference/ire_sets.rds
      heatmap_set: ire3_all
    output_dir: results/

Relative paths are resolved against the directory holding the YAML file.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

PathLike = Union[str, Path]

QUANTIFIERS = ("salmon", "kallisto")
FILTER_METHODS = ("cpm", "filterByExpr")
DISPERSION_TRENDS = ("none", "movingave", "loess", "locfit", "locfit.mixed")


def _check_type(name: str, value: Any, types: Any, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(types, tuple):
        types = (types,)
    # YAML booleans are ints to isinstance
    if isinstance(value, bool) and bool not in types or not isinstance(value, types):
        expected = " or ".join(t.__name__ for t in types)
        raise ValueError(f"{name} must be {expected}, got {value!r}")


@dataclass
class QuantConfig:
    dir: Optional[Path] = None
    quantifier: str = "salmon"
    scale_by_overdispersion: bool = True
    strip_versions: bool = False


@dataclass
class AnnotationConfig:
    path: Optional[Path] = None
    transcript_col: str = "transcript_id"
    gene_id_col: str = "gene_id"
    gene_name_col: str = "gene_name"


@dataclass
class SamplesConfig:
    sheet: Optional[Path] = None
    genotype_pattern: Optional[str] = None
    reference: Optional[str] = None


@dataclass
class FilterConfig:
    method: str = "cpm"
    min_cpm: float = 1.0
    # None: size of the smallest genotype group
    min_samples: Optional[int] = None


@dataclass
class ModelConfig:
    fdr: float = 0.05
    trend: str = "locfit"
    robust: bool = False
    prior_count: float = 2.0


@dataclass
class GeneSetConfig:
    path: Optional[Path] = None
    min_size: int = 1
    heatmap_set: Optional[str] = None


@dataclass
class AnalysisConfig:
    """Complete configuration of one analysis run."""
    quant: QuantConfig = field(default_factory=QuantConfig)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    samples: SamplesConfig = field(default_factory=SamplesConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    gene_sets: GeneSetConfig = field(default_factory=GeneSetConfig)
    output_dir: Path = Path("results")

    def validate(self) -> "AnalysisConfig":
        """
        Check required inputs and option values.

        Raises:
            ValueError: On a missing required path or an unsupported value.
        """
        required = {
            "quant.dir": self.quant.dir,
            "annotation.path": self.annotation.path,
            "gene_sets.path": self.gene_sets.path,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ValueError(f"Missing required config entries: {', '.join(missing)}")
        if self.output_dir is None:
            raise ValueError("output_dir must not be empty")

        _check_type("model.fdr", self.model.fdr, (int, float))
        _check_type("model.prior_count", self.model.prior_count, (int, float))
        _check_type("model.robust", self.model.robust, bool)
        _check_type("filter.min_cpm", self.filter.min_cpm, (int, float))
        _check_type("filter.min_samples", self.filter.min_samples, int, optional=True)
        _check_type("gene_sets.min_size", self.gene_sets.min_size, int)
        _check_type("quant.scale_by_overdispersion", self.quant.scale_by_overdispersion, bool)
        _check_type("quant.strip_versions", self.quant.strip_versions, bool)

        if self.quant.quantifier not in QUANTIFIERS:
            raise ValueError(f"quant.quantifier must be one of {QUANTIFIERS}")
        if self.filter.method not in FILTER_METHODS:
            raise ValueError(f"filter.method must be one of {FILTER_METHODS}")
        if self.model.trend not in DISPERSION_TRENDS:
            raise ValueError(f"model.trend must be one of {DISPERSION_TRENDS}")
        if not 0 < self.model.fdr < 1:
            raise ValueError(f"model.fdr must be in (0, 1), got {self.model.fdr}")
        if self.filter.min_cpm < 0:
            raise ValueError("filter.min_cpm must be non-negative")
        if self.filter.min_samples is not None and self.filter.min_samples < 1:
            raise ValueError("filter.min_samples must be at least 1")
        if self.gene_sets.min_size < 1:
            raise ValueError("gene_sets.min_size must be at least 1")
        if self.samples.sheet is None and self.samples.genotype_pattern is None:
            raise ValueError("Set samples.sheet or samples.genotype_pattern")
        return self


_SECTIONS = {
    "quant": QuantConfig,
    "annotation": AnnotationConfig,
    "samples": SamplesConfig,
    "filter": FilterConfig,
    "model": ModelConfig,
    "gene_sets": GeneSetConfig,
}

_PATH_FIELDS = {
    ("quant", "dir"),
    ("annotation", "path"),
    ("samples", "sheet"),
    ("gene_sets", "path"),
}


def _resolve(value: Any, base_dir: Path) -> Optional[Path]:
    if value is None:
        return None
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def _build_section(name: str, values: Optional[Dict[str, Any]], base_dir: Path) -> Any:
    cls = _SECTIONS[name]
    if values is not None and not isinstance(values, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    values = dict(values or {})

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {unknown}")

    for key in list(values):
        if (name, key) in _PATH_FIELDS:
            values[key] = _resolve(values[key], base_dir)
    return cls(**values)


def config_from_dict(data: Dict[str, Any], base_dir: PathLike = ".") -> AnalysisConfig:
    """Build and validate an AnalysisConfig from a plain mapping."""
    base_dir = Path(base_dir)
    data = dict(data or {})

    unknown = sorted(set(data) - set(_SECTIONS) - {"output_dir"})
    if unknown:
        raise ValueError(f"Unknown config sections: {unknown}")

    sections = {name: _build_section(name, data.get(name), base_dir) for name in _SECTIONS}
    output_dir = _resolve(data.get("output_dir", "results"), base_dir)
    return AnalysisConfig(output_dir=output_dir, **sections).validate()


def load_config(path: PathLike) -> AnalysisConfig:
    """
    Load the analysis configuration from YAML.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: On unknown keys, missing required entries or bad values.
    """
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_file, "r") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a mapping at the top level")

    return config_from_dict(data or {}, base_dir=config_file.resolve().parent)
