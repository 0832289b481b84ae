from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from ire_dge.config import load_config


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """IRE-focused RNA-seq differential expression with edgeR and limma."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("run")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Override the output directory from the config file.",
)
def run_command(config_path: Path, out_dir: Optional[Path]) -> None:
    """Run the full analysis described by CONFIG_PATH (YAML)."""
    from ire_dge.workflow import run_analysis

    try:
        config = load_config(config_path)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="CONFIG_PATH")
    if out_dir is not None:
        config.output_dir = out_dir

    result = run_analysis(config)

    click.echo(f"Genes tested: {result.experiment.shape[0]}")
    click.echo(f"DE genes (FDR < {config.model.fdr}): {result.n_de}")
    for row in result.enrichment.itertuples():
        click.echo(f"  {row.gene_set}: {row.direction}, p={row.p_value:.3g}, FDR={row.adj_p_value:.3g}")
    click.echo(f"Report: {Path(config.output_dir) / 'report.html'}")


@cli.command("check-config")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_config_command(config_path: Path) -> None:
    """Validate CONFIG_PATH without running anything."""
    try:
        config = load_config(config_path)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="CONFIG_PATH")
    click.echo(f"Config OK. Results go to {config.output_dir}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
