"""
Macro Rebalancer — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Obtain indicators (live collection, or ``--snapshot FILE`` offline).
  4. Execute action (score, rebalance, cache maintenance, etc.).
  5. Report result to stdout; errors go to stderr as ``[ERROR] …``.

Install and run::

    pip install -e .
    macro-rebalancer --help
    macro-rebalancer validate-config
    macro-rebalancer check-feeds
    macro-rebalancer fetch-snapshot
    macro-rebalancer scores --snapshot data/snapshots/latest.json
    macro-rebalancer signal XEQT.TO
    macro-rebalancer rebalance --export --csv
    macro-rebalancer clear-cache
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="macro-rebalancer",
    help="Macro-driven tactical portfolio rebalancing signals.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from macro_rebalancer.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from macro_rebalancer.utils.logging import configure_logging
    configure_logging(config.logging)


def _snapshot_or_exit(config, snapshot_path: Optional[str]):
    """Load ``snapshot_path`` if given, otherwise collect indicators live."""
    from macro_rebalancer.ingestion.collector import IndicatorCollector
    from macro_rebalancer.ingestion.snapshot import load_snapshot

    if snapshot_path is None:
        with IndicatorCollector.from_config(config) as collector:
            return collector.collect()
    try:
        return load_snapshot(Path(snapshot_path))
    except FileNotFoundError:
        typer.echo(f"[ERROR] Snapshot file not found: {snapshot_path}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _portfolio_or_exit(config, allocations_file: Optional[str], metadata_file: Optional[str]):
    """Load the portfolio tables, printing a friendly error on failure."""
    from macro_rebalancer.portfolio.store import load_portfolio

    alloc_path = Path(allocations_file or config.data.allocations_file)
    meta_path = Path(metadata_file or config.data.metadata_file)
    try:
        return load_portfolio(alloc_path, meta_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Portfolio tables are invalid:\n{exc}", err=True)
        raise typer.Exit(code=1)


_CONFIG_OPTION_HELP = "Path to TOML config file (default: config/default.toml)."
_SNAPSHOT_OPTION_HELP = "Read indicators from a saved snapshot instead of fetching them."


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    reb = config.rebalancing

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Regions:          {', '.join(sorted(config.regions))}")
    typer.echo(f"  Trend periods:    {config.trend.periods} (history {config.trend.history_points})")
    typer.echo(f"  Hold threshold:   {reb.min_threshold:.2%}")
    typer.echo(f"  Max single move:  {reb.max_single_move:.2%} ({'on' if reb.cap_single_move else 'off'})")
    typer.echo(f"  Vol dampening:    {'on' if reb.volatility_adjustment else 'off'} (x{reb.dampening_factor})")
    typer.echo(f"  Balance:          {'on' if reb.balance_constraint else 'off'}")
    typer.echo(f"  Cache dir:        {config.data.cache_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("check-feeds")
def check_feeds_cmd(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_OPTION_HELP),
) -> None:
    """Report OK / ERROR for every indicator feed.

    Exits with code 1 when any feed failed.
    """
    from macro_rebalancer.ingestion.collector import FEED_OK, check_feeds
    from macro_rebalancer.reporting.formatters import format_feed_health

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    rows = check_feeds(_snapshot_or_exit(config, snapshot_path))
    typer.echo(format_feed_health(rows))
    if any(status != FEED_OK for _, status in rows):
        raise typer.Exit(code=1)


@app.command("fetch-snapshot")
def fetch_snapshot(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Destination JSON file (default: data.snapshot_file from config).",
    ),
) -> None:
    """Collect every indicator now and save the result as a snapshot file."""
    from macro_rebalancer.ingestion.collector import IndicatorCollector, check_feeds
    from macro_rebalancer.ingestion.snapshot import save_snapshot
    from macro_rebalancer.reporting.formatters import format_feed_health

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with IndicatorCollector.from_config(config) as collector:
        snapshot = collector.collect()
    target = Path(output or config.data.snapshot_file)
    content_hash = save_snapshot(target, snapshot, metadata={"source": "live"})

    typer.echo(format_feed_health(check_feeds(snapshot)))
    typer.echo("")
    typer.echo(f"  Saved:  {target}")
    typer.echo(f"  Hash:   {content_hash[:12]}")
    typer.echo("[OK] Snapshot written.")


@app.command("scores")
def scores_cmd(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_OPTION_HELP),
) -> None:
    """Print every indicator score with its audit description."""
    from macro_rebalancer.reporting.formatters import format_scores_table, snapshot_age_hours
    from macro_rebalancer.scoring.composite import overall_score
    from macro_rebalancer.scoring.indicators import score_indicators

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    snapshot = _snapshot_or_exit(config, snapshot_path)
    scores = score_indicators(snapshot, config)
    overall = overall_score(scores, config.weights.as_mapping())
    typer.echo(format_scores_table(
        scores, snapshot_age_hours(snapshot.collected_at), overall_score=overall,
    ))


@app.command("signal")
def signal_cmd(
    ticker: str = typer.Argument(..., help="Ticker to produce a directive for, e.g. XEQT.TO."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_OPTION_HELP),
    allocations_file: Optional[str] = typer.Option(
        None, "--allocations", help="Allocations CSV (default: from config)."
    ),
    metadata_file: Optional[str] = typer.Option(
        None, "--metadata", help="Asset metadata CSV (default: from config)."
    ),
) -> None:
    """Print the directive for one ticker: Hold / Increase X.XX% / Decrease X.XX%."""
    from macro_rebalancer.rebalancing.engine import RebalanceEngine
    from macro_rebalancer.rebalancing.errors import RebalanceError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    portfolio = _portfolio_or_exit(config, allocations_file, metadata_file)
    snapshot = _snapshot_or_exit(config, snapshot_path)
    try:
        directive = RebalanceEngine(config).signal(ticker, portfolio, snapshot)
    except RebalanceError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(directive)


@app.command("rebalance")
def rebalance_cmd(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    snapshot_path: Optional[str] = typer.Option(None, "--snapshot", help=_SNAPSHOT_OPTION_HELP),
    allocations_file: Optional[str] = typer.Option(
        None, "--allocations", help="Allocations CSV (default: from config)."
    ),
    metadata_file: Optional[str] = typer.Option(
        None, "--metadata", help="Asset metadata CSV (default: from config)."
    ),
    export: bool = typer.Option(
        False,
        "--export",
        help="Also write the full audit dump as JSON to data.output_dir.",
    ),
    export_csv: bool = typer.Option(
        False,
        "--csv",
        help="Also write one flat row per asset as CSV to data.output_dir.",
    ),
) -> None:
    """Evaluate the whole portfolio and print one row per asset."""
    from macro_rebalancer.rebalancing.engine import RebalanceEngine
    from macro_rebalancer.rebalancing.errors import RebalanceError
    from macro_rebalancer.reporting.export import export_report_csv, export_report_json
    from macro_rebalancer.reporting.formatters import format_rebalance_table, snapshot_age_hours

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    portfolio = _portfolio_or_exit(config, allocations_file, metadata_file)
    snapshot = _snapshot_or_exit(config, snapshot_path)
    try:
        report = RebalanceEngine(config).evaluate(portfolio, snapshot)
    except RebalanceError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_rebalance_table(report, snapshot_age_hours(snapshot.collected_at)))

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    output_dir = Path(config.data.output_dir)
    if export or export_csv:
        typer.echo("")
    if export:
        path = export_report_json(
            report, output_dir / f"rebalance_{stamp}.json", collected_at=snapshot.collected_at
        )
        typer.echo(f"  Exported: {path}")
    if export_csv:
        path = export_report_csv(report, output_dir / f"rebalance_{stamp}.csv")
        typer.echo(f"  Exported: {path}")

    typer.echo("")
    typer.echo("[OK] Rebalance evaluated.")


@app.command("clear-cache")
def clear_cache(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Delete every cached indicator fetch."""
    from macro_rebalancer.ingestion.cache import TTLCache

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    cache = TTLCache(config.data.cache_dir, version=config.acquisition.cache_version)
    removed = cache.clear()
    typer.echo(f"  Removed {removed} cached entr{'y' if removed == 1 else 'ies'}.")
    typer.echo("[OK] Cache cleared.")


if __name__ == "__main__":
    app()
