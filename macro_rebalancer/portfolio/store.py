"""
CSV loader for the two portfolio tables.

Allocations (``config/allocations.csv``) — required columns:
  ticker, allocation

Metadata (``config/metadata.csv``) — required columns:
  ticker, class
Optional columns (empty → default):
  region, sensitivity

Allocation values:
  "25%"   → 0.25      (a trailing % always means a percentage)
  "0.25"  → 0.25      (otherwise the value is a fraction in [0, 1])
  "25"    → error     (ambiguous; write "25%" instead)

Asset class values (case-insensitive):
  growth / equity → growth
  defensive       → defensive

Region values (case-insensitive):
  us / u.s. / usa          → us
  domestic / canada / home → domestic
  global, or anything else → global

Sensitivity: a positive number; blank, non-numeric or <= 0 → 1.0.

Joining the tables:
  * a ticker with an allocation but no metadata row gets default metadata
    and is recorded as unclassified (it is rebalanced, but a signal cannot
    be requested for it);
  * a ticker with metadata but no allocation row gets allocation 0.
"""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from macro_rebalancer.models.asset import AssetRecord, Portfolio
from macro_rebalancer.taxonomy.indicator_taxonomy import (
    ASSET_CLASS_ALIASES,
    REGION_ALIASES,
    AssetClass,
    Region,
)

logger = logging.getLogger(__name__)

ALLOCATION_COLUMNS = frozenset({"ticker", "allocation"})
METADATA_COLUMNS = frozenset({"ticker", "class"})

DEFAULT_SENSITIVITY = 1.0


# ── Field parsers ──────────────────────────────────────────────────────────────

def parse_allocation(raw: Union[str, float, int]) -> float:
    """Convert an allocation cell to a fraction in ``[0, 1]``.

    Raises:
        ValueError: If the value is not numeric, is negative, or is a bare
            number above 1 (which would be an unmarked percentage).
    """
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("%"):
            try:
                value = float(text[:-1].strip()) / 100.0
            except ValueError:
                raise ValueError(f"Invalid allocation '{raw}': not a number.")
        else:
            try:
                value = float(text)
            except ValueError:
                raise ValueError(f"Invalid allocation '{raw}': not a number.")
            if value > 1.0:
                raise ValueError(
                    f"Allocation '{raw}' is above 1. Write percentages with a "
                    f"trailing '%', e.g. '{text}%'."
                )
    else:
        value = float(raw)
        if value > 1.0:
            raise ValueError(
                f"Allocation {raw} is above 1. Pass a fraction, or a string "
                f"with a trailing '%'."
            )

    if not math.isfinite(value) or value < 0.0 or value > 1.0:
        raise ValueError(f"Allocation '{raw}' must lie in [0, 1] (or 0%–100%).")
    return value


def parse_asset_class(raw: Optional[str]) -> AssetClass:
    """Resolve an asset class name or alias; blank means growth.

    Raises:
        ValueError: On an unrecognized class name.
    """
    text = (raw or "").strip().lower()
    if not text:
        return AssetClass.GROWTH
    try:
        return ASSET_CLASS_ALIASES[text]
    except KeyError:
        valid = sorted(ASSET_CLASS_ALIASES)
        raise ValueError(f"Invalid class value '{raw}'. Valid values: {valid}")


def parse_region(raw: Optional[str]) -> Region:
    """Resolve a region name or alias; unknown or blank regions are global."""
    text = (raw or "").strip().lower()
    region = REGION_ALIASES.get(text)
    if region is None:
        if text:
            logger.debug("Unknown region '%s'; treating as global.", raw)
        return Region.GLOBAL
    return region


def parse_sensitivity(raw: Optional[str]) -> float:
    """Positive sensitivity multiplier; anything else falls back to 1.0."""
    text = (raw or "").strip()
    if not text:
        return DEFAULT_SENSITIVITY
    try:
        value = float(text)
    except ValueError:
        return DEFAULT_SENSITIVITY
    if not math.isfinite(value) or value <= 0.0:
        return DEFAULT_SENSITIVITY
    return value


# ── Table loaders ──────────────────────────────────────────────────────────────

def read_allocations(path: Path) -> dict[str, float]:
    """Parse the allocations CSV into ``{ticker: fraction}``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On missing columns, duplicate tickers or invalid rows.
    """
    rows = _read_rows(path, ALLOCATION_COLUMNS, "Allocations")
    allocations: dict[str, float] = {}

    def handle(row: dict[str, str]) -> None:
        ticker = _req(row, "ticker")
        if ticker in allocations:
            raise ValueError(f"Duplicate ticker '{ticker}'.")
        allocations[ticker] = parse_allocation(_req(row, "allocation"))

    _apply_rows(rows, handle, path)
    return allocations


def read_metadata(path: Path) -> dict[str, tuple[AssetClass, Region, float]]:
    """Parse the metadata CSV into ``{ticker: (class, region, sensitivity)}``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On missing columns, duplicate tickers or invalid rows.
    """
    rows = _read_rows(path, METADATA_COLUMNS, "Metadata")
    metadata: dict[str, tuple[AssetClass, Region, float]] = {}

    def handle(row: dict[str, str]) -> None:
        ticker = _req(row, "ticker")
        if ticker in metadata:
            raise ValueError(f"Duplicate ticker '{ticker}'.")
        metadata[ticker] = (
            parse_asset_class(row.get("class")),
            parse_region(row.get("region")),
            parse_sensitivity(row.get("sensitivity")),
        )

    _apply_rows(rows, handle, path)
    return metadata


def load_portfolio(allocations_csv: Path, metadata_csv: Path) -> Portfolio:
    """Join the allocation and metadata tables into a :class:`Portfolio`.

    Allocation-table order comes first, then metadata-only tickers.

    Raises:
        FileNotFoundError: If either file does not exist.
        ValueError: If either table is invalid.
    """
    allocations = read_allocations(Path(allocations_csv))
    metadata = read_metadata(Path(metadata_csv))

    records: list[AssetRecord] = []
    unclassified: list[str] = []

    for ticker, allocation in allocations.items():
        meta = metadata.get(ticker)
        if meta is None:
            unclassified.append(ticker)
            records.append(AssetRecord(ticker=ticker, allocation=allocation))
            continue
        asset_class, region, sensitivity = meta
        records.append(AssetRecord(
            ticker=ticker, allocation=allocation,
            asset_class=asset_class, region=region, sensitivity=sensitivity,
        ))

    for ticker, (asset_class, region, sensitivity) in metadata.items():
        if ticker in allocations:
            continue
        records.append(AssetRecord(
            ticker=ticker, allocation=0.0,
            asset_class=asset_class, region=region, sensitivity=sensitivity,
        ))

    if unclassified:
        logger.warning(
            "No metadata for %d ticker(s): %s (defaults applied)",
            len(unclassified), ", ".join(unclassified),
        )

    portfolio = Portfolio.from_records(records, unclassified=unclassified)
    total = portfolio.total_allocation
    if abs(total - 1.0) > 0.01:
        logger.warning("Allocations sum to %.4f, not 1.0.", total)
    logger.info("Loaded portfolio | assets=%d total_allocation=%.4f", len(records), total)
    return portfolio


# ── Private helpers ────────────────────────────────────────────────────────────

def _read_rows(path: Path, required: frozenset[str], label: str) -> list[dict[str, str]]:
    if not path.exists():
        raise FileNotFoundError(f"{label} CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = {c.strip().lower() for c in reader.fieldnames}
        missing = required - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )
        rows = [
            {(k or "").strip().lower(): (v or "") for k, v in row.items()}
            for row in reader
        ]

    if not rows:
        logger.warning("%s CSV is empty (header only): %s", label, path)
    return rows


def _apply_rows(rows: list[dict[str, str]], handle, path: Path) -> None:
    """Run ``handle`` on every row, collecting failures into one ValueError."""
    errors: list[tuple[int, str]] = []
    for i, row in enumerate(rows):
        line_no = i + 2  # 1-based, skip header row
        try:
            handle(row)
        except (ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc)))

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:max_shown])
        suffix = f"\n  … and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )


def _req(row: dict[str, str], key: str) -> str:
    """Return a required string field, stripped; raise if empty."""
    v = row.get(key, "").strip()
    if not v:
        raise ValueError(f"Required field '{key}' is empty.")
    return v
