"""CLI interface for retri"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import click
import yaml

from retri.application.benchmark import BenchmarkReport, BenchmarkService
from retri.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx) -> ConfigManager:
    """Create the configuration manager, exiting on invalid configuration"""
    verbose = ctx.obj.get("verbose", False)
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)


def _output_benchmark_report(report: BenchmarkReport) -> None:
    """Print benchmark results as a table

    Args:
        report: Benchmark report
    """
    click.echo("retri benchmark (time.perf_counter)")
    click.echo("=" * 42)
    click.echo(f"Iterations per run: {report.iterations:,}\n")

    click.echo("Mean time per call (ms):\n")
    for result in report.results:
        overhead = f"(overhead: {result.overhead_ms:.4f} ms)" if result.overhead_ms is not None else ""
        click.echo(f"  {result.name:<32} {result.per_call_ms:>10.4f} ms  {overhead}")

    click.echo("\nTotal time (ms):")
    for result in report.results:
        click.echo(f"  {result.name:<32} {result.total_ms:>10.2f} ms")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .retri.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """retri - resilient async invocation with retries and circuit breaking"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--iterations", "-n", type=click.IntRange(min=1), help="Measured calls per scenario. Overrides config.")
@click.option("--warmup", type=click.IntRange(min=0), help="Warm-up calls per scenario. Overrides config.")
@click.option(
    "--retries",
    "-r",
    type=click.IntRange(min=0),
    multiple=True,
    help="Retry budget to benchmark (repeatable). Overrides config.",
)
@click.pass_context
def bench(ctx, iterations: Optional[int], warmup: Optional[int], retries: Tuple[int, ...]):
    """Measure the overhead of retry() around an always-successful call."""
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)

    updates = {}
    if iterations is not None:
        updates["iterations"] = iterations
    if warmup is not None:
        updates["warmup"] = warmup
    if retries:
        updates["retries"] = list(retries)
    bench_config = config_manager.get_benchmark_config().model_copy(update=updates)

    logger.info(f"Running benchmark with {bench_config.iterations} iterations")
    try:
        report = asyncio.run(BenchmarkService(bench_config).run())
    except Exception as e:
        _die(f"Benchmark failed: {e}", verbose=verbose, exc=e)
    _output_benchmark_report(report)


@cli.command()
@click.pass_context
def config(ctx):
    """Print the effective configuration as YAML."""
    config_manager = _load_config(ctx)
    if config_manager.config_path:
        click.echo(f"# Loaded from {config_manager.config_path}")
    click.echo(yaml.safe_dump(config_manager.config.model_dump(), sort_keys=False).rstrip())


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
