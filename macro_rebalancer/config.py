"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``MACRO_REBALANCER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every scoring, aggregation and rebalancing call receives its configuration
explicitly (an ``AppConfig`` or one of its sections) — there is no module-level
configuration object read behind the caller's back.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey, Region

logger = logging.getLogger(__name__)


def _require_increasing(
    section: str,
    ladder: list[tuple[str, float]],
    strict: bool = True,
) -> None:
    """Raise ``ValueError`` unless the named boundaries are ordered ascending."""
    for (lo_name, lo), (hi_name, hi) in zip(ladder, ladder[1:]):
        if lo > hi or (strict and lo == hi):
            op = "<" if strict else "<="
            raise ValueError(
                f"{section}: expected {lo_name} ({lo}) {op} {hi_name} ({hi})."
            )

# ── Threshold ladders ─────────────────────────────────────────────────────────


class UnemploymentThresholds(BaseModel):
    """Unemployment-rate ladder (percent). Lower is better."""

    model_config = ConfigDict(frozen=True)

    very_low: float = 3.5
    low: float = 4.5
    high: float = 5.5
    very_high: float = 6.5

    @model_validator(mode="after")
    def validate_ladder(self) -> "UnemploymentThresholds":
        _require_increasing(
            "thresholds.unemployment",
            [("very_low", self.very_low), ("low", self.low),
             ("high", self.high), ("very_high", self.very_high)],
        )
        return self


class CpiThresholds(BaseModel):
    """Inflation ladder (YoY percent). Near target is best; shared by both CPI series."""

    model_config = ConfigDict(frozen=True)

    very_low: float = 1.0
    target: float = 2.0
    tolerance: float = 0.5
    high: float = 4.0

    @model_validator(mode="after")
    def validate_ladder(self) -> "CpiThresholds":
        if self.tolerance < 0:
            raise ValueError(
                f"thresholds.cpi.tolerance must be >= 0, got {self.tolerance}."
            )
        _require_increasing(
            "thresholds.cpi",
            [("very_low", self.very_low),
             ("target - tolerance", self.target - self.tolerance),
             ("target + tolerance", self.target + self.tolerance),
             ("high", self.high)],
            strict=False,
        )
        return self


class VolatilityThresholds(BaseModel):
    """Volatility-index ladder. Lower is better."""

    model_config = ConfigDict(frozen=True)

    low: float = 15.0
    normal: float = 20.0
    elevated: float = 25.0
    high: float = 30.0

    @model_validator(mode="after")
    def validate_ladder(self) -> "VolatilityThresholds":
        _require_increasing(
            "thresholds.volatility",
            [("low", self.low), ("normal", self.normal),
             ("elevated", self.elevated), ("high", self.high)],
        )
        return self


class YieldCurveThresholds(BaseModel):
    """10Y-2Y spread cut points (percentage points). Positive / steep is better."""

    model_config = ConfigDict(frozen=True)

    positive: float = 0.5
    flat: float = -0.5
    inverted: float = -1.0

    @model_validator(mode="after")
    def validate_ladder(self) -> "YieldCurveThresholds":
        _require_increasing(
            "thresholds.yield_curve",
            [("inverted", self.inverted), ("flat", self.flat), ("positive", self.positive)],
        )
        return self


class CreditSpreadThresholds(BaseModel):
    """Corporate credit spread cut points (percentage points). Lower is better."""

    model_config = ConfigDict(frozen=True)

    low: float = 1.0
    normal: float = 2.0
    elevated: float = 3.0

    @model_validator(mode="after")
    def validate_ladder(self) -> "CreditSpreadThresholds":
        _require_increasing(
            "thresholds.credit_spread",
            [("low", self.low), ("normal", self.normal), ("elevated", self.elevated)],
        )
        return self


class ThresholdsConfig(BaseModel):
    """All indicator threshold ladders."""

    model_config = ConfigDict(frozen=True)

    unemployment: UnemploymentThresholds = UnemploymentThresholds()
    cpi: CpiThresholds = CpiThresholds()
    volatility: VolatilityThresholds = VolatilityThresholds()
    yield_curve: YieldCurveThresholds = YieldCurveThresholds()
    credit_spread: CreditSpreadThresholds = CreditSpreadThresholds()


# ── Weights and region table ──────────────────────────────────────────────────


class WeightsConfig(BaseModel):
    """Per-indicator weight in the composite score. All weights must be positive."""

    model_config = ConfigDict(frozen=True)

    unemployment: float = 1.2
    domestic_cpi: float = 1.2
    foreign_cpi: float = 0.8
    gdp: float = 1.0
    volatility: float = 1.5
    yield_curve: float = 1.7
    credit_spread: float = 1.4

    @field_validator("*")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Indicator weights must be positive, got {v}.")
        return v

    def as_mapping(self) -> dict[IndicatorKey, float]:
        """Return the weights keyed by ``IndicatorKey``."""
        return {IndicatorKey(name): value for name, value in self.model_dump().items()}


# Region → (indicator → weight multiplier).  An empty entry means
# "every indicator with a configured weight, multiplier 1.0".
DEFAULT_REGION_TABLE: dict[str, dict[IndicatorKey, float]] = {
    Region.US.value: {
        IndicatorKey.UNEMPLOYMENT:  1.5,
        IndicatorKey.DOMESTIC_CPI:  1.3,
        IndicatorKey.VOLATILITY:    1.2,
        IndicatorKey.YIELD_CURVE:   1.1,
        IndicatorKey.CREDIT_SPREAD: 1.1,
    },
    Region.DOMESTIC.value: {
        IndicatorKey.FOREIGN_CPI:  1.5,
        IndicatorKey.GDP:          1.4,
        IndicatorKey.UNEMPLOYMENT: 0.7,
        IndicatorKey.VOLATILITY:   0.8,
    },
    Region.GLOBAL.value: {},
}


class TrendConfig(BaseModel):
    """Trend estimator parameters."""

    model_config = ConfigDict(frozen=True)

    periods: int = 3
    history_points: int = 6

    @model_validator(mode="after")
    def validate_lookback(self) -> "TrendConfig":
        if self.periods < 1:
            raise ValueError(f"trend.periods must be >= 1, got {self.periods}.")
        if self.history_points <= self.periods:
            raise ValueError(
                f"trend.history_points ({self.history_points}) must exceed "
                f"trend.periods ({self.periods}) or no trend can ever be computed."
            )
        return self


class RebalancingConfig(BaseModel):
    """Delta engine, reconciliation and signal gating parameters."""

    model_config = ConfigDict(frozen=True)

    min_threshold: float = 0.005
    max_single_move: float = 0.15
    cap_single_move: bool = False
    volatility_adjustment: bool = True
    balance_constraint: bool = True
    dampening_factor: float = 0.7

    @field_validator("min_threshold")
    @classmethod
    def validate_min_threshold(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError(f"rebalancing.min_threshold must be >= 0, got {v}.")
        return v

    @field_validator("max_single_move", "dampening_factor")
    @classmethod
    def validate_unit_fraction(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"Value must be in (0.0, 1.0], got {v}.")
        return v


# ── Ambient sections ──────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for portfolio tables, snapshots, cache and outputs."""

    model_config = ConfigDict(frozen=True)

    allocations_file: str = "config/allocations.csv"
    metadata_file: str = "config/metadata.csv"
    snapshot_file: str = "data/snapshots/latest.json"
    cache_dir: str = "data/cache"
    output_dir: str = "data/outputs"


class AcquisitionConfig(BaseModel):
    """External data source identifiers and cache lifetimes."""

    model_config = ConfigDict(frozen=True)

    fred_series: dict[IndicatorKey, str] = {
        IndicatorKey.UNEMPLOYMENT:  "UNRATE",
        IndicatorKey.DOMESTIC_CPI:  "CPIAUCSL",
        IndicatorKey.FOREIGN_CPI:   "CANCPIALLMINMEI",
        IndicatorKey.GDP:           "NGDPRSAXDCCAQ",
        IndicatorKey.VOLATILITY:    "VIXCLS",
        IndicatorKey.YIELD_CURVE:   "T10Y2Y",
        IndicatorKey.CREDIT_SPREAD: "BAMLC0A0CM",
    }
    statcan_cpi_vector: int = 41690973
    volatility_symbol: str = "^VIX"
    latest_ttl_seconds: int = 3600
    series_ttl_seconds: int = 21600
    statcan_ttl_seconds: int = 21600
    volatility_daily_points: int = 180
    timeout_seconds: float = 30.0
    cache_version: str = "v3"

    @field_validator("latest_ttl_seconds", "series_ttl_seconds", "statcan_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Cache TTL must be >= 0 seconds, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env, or directly
    (``AppConfig()``) to get the documented defaults.
    """

    model_config = ConfigDict(frozen=True)

    thresholds: ThresholdsConfig = ThresholdsConfig()
    weights: WeightsConfig = WeightsConfig()
    regions: dict[str, dict[IndicatorKey, float]] = DEFAULT_REGION_TABLE
    trend: TrendConfig = TrendConfig()
    rebalancing: RebalancingConfig = RebalancingConfig()
    data: DataConfig = DataConfig()
    acquisition: AcquisitionConfig = AcquisitionConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False

    @field_validator("regions")
    @classmethod
    def validate_regions(
        cls, v: dict[str, dict[IndicatorKey, float]]
    ) -> dict[str, dict[IndicatorKey, float]]:
        for region, multipliers in v.items():
            for key, mult in multipliers.items():
                if mult < 0:
                    raise ValueError(
                        f"regions.{region}.{key} multiplier must be >= 0, got {mult}."
                    )
        return {region.lower(): dict(multipliers) for region, multipliers in v.items()}


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.  When no explicit path is
        given and the default file is absent, the documented defaults are used.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = root / "config" / "default.toml"

    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

        # Also merge local.toml if present (gitignored local overrides)
        local_config_path = config_path.parent / "local.toml"
        if local_config_path.exists():
            with open(local_config_path, "rb") as f:
                local_raw: dict[str, Any] = tomllib.load(f)
            raw = _deep_merge(raw, local_raw)
    else:
        logger.warning(
            "Default config %s not found; using built-in defaults.", config_path
        )

    # 3. Apply MACRO_REBALANCER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply MACRO_REBALANCER_* env vars to the raw config dict.

    Supported overrides:
      MACRO_REBALANCER_LOG_LEVEL      → raw["logging"]["level"]
      MACRO_REBALANCER_CACHE_DIR      → raw["data"]["cache_dir"]
      MACRO_REBALANCER_MIN_THRESHOLD  → raw["rebalancing"]["min_threshold"]
      MACRO_REBALANCER_DEBUG          → raw["debug"]
    """
    if log_level := os.environ.get("MACRO_REBALANCER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if cache_dir := os.environ.get("MACRO_REBALANCER_CACHE_DIR"):
        raw.setdefault("data", {})["cache_dir"] = cache_dir

    if min_threshold := os.environ.get("MACRO_REBALANCER_MIN_THRESHOLD"):
        raw.setdefault("rebalancing", {})["min_threshold"] = float(min_threshold)

    if debug := os.environ.get("MACRO_REBALANCER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure.

    A ``[regions]`` table replaces the default region table region by region,
    so a config file may redefine one region without restating the others.
    """
    project = raw.pop("project", {})
    thresholds = raw.get("thresholds", {})

    regions = {key: dict(val) for key, val in DEFAULT_REGION_TABLE.items()}
    for region, multipliers in raw.get("regions", {}).items():
        regions[region.lower()] = dict(multipliers)

    return AppConfig(
        thresholds=ThresholdsConfig(
            unemployment=UnemploymentThresholds(**thresholds.get("unemployment", {})),
            cpi=CpiThresholds(**thresholds.get("cpi", {})),
            volatility=VolatilityThresholds(**thresholds.get("volatility", {})),
            yield_curve=YieldCurveThresholds(**thresholds.get("yield_curve", {})),
            credit_spread=CreditSpreadThresholds(**thresholds.get("credit_spread", {})),
        ),
        weights=WeightsConfig(**raw.get("weights", {})),
        regions=regions,
        trend=TrendConfig(**raw.get("trend", {})),
        rebalancing=RebalancingConfig(**raw.get("rebalancing", {})),
        data=DataConfig(**raw.get("data", {})),
        acquisition=AcquisitionConfig(**raw.get("acquisition", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
