"""
Portfolio models — per-asset records and the asset universe they form.

``AssetRecord`` holds one ticker's current allocation and the metadata that
steers its delta (class, region, sensitivity).  ``Portfolio`` is the full
universe passed to the engine; reconciliation and normalization always
operate on every asset in it, never on a single ticker.

Allocations are fractions in ``[0, 1]``.  Percentage strings are converted
at the storage boundary (see ``portfolio/store.py``), never here.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from macro_rebalancer.taxonomy.indicator_taxonomy import AssetClass, Region


class AssetRecord(BaseModel):
    """One asset's allocation and metadata.

    Attributes:
        ticker: Asset identifier, e.g. ``"XEQT.TO"``.
        allocation: Current fraction of the portfolio, in ``[0, 1]``.
        asset_class: Growth-seeking or defensive.
        region: Home region; selects the composite's indicator subset.
        sensitivity: Multiplier on the base shift (> 0, default 1.0).
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    allocation: float
    asset_class: AssetClass = AssetClass.GROWTH
    region: Region = Region.GLOBAL
    sensitivity: float = 1.0

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ticker must be a non-empty string.")
        return v

    @field_validator("allocation")
    @classmethod
    def validate_allocation(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"allocation must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("sensitivity")
    @classmethod
    def validate_sensitivity(cls, v: float) -> float:
        if v <= 0.0:
            raise ValueError(f"sensitivity must be > 0, got {v}.")
        return v

    @property
    def is_defensive(self) -> bool:
        return self.asset_class == AssetClass.DEFENSIVE


class Portfolio(BaseModel):
    """The asset universe for one rebalancing invocation.

    Attributes:
        assets: Records keyed by ticker.
        unclassified: Tickers that hold an allocation but had no metadata
            row.  They take part in reconciliation with default metadata,
            but a signal cannot be requested for them.
    """

    model_config = ConfigDict(frozen=True)

    assets: dict[str, AssetRecord]
    unclassified: frozenset[str] = frozenset()

    @model_validator(mode="after")
    def validate_keys(self) -> "Portfolio":
        for ticker, record in self.assets.items():
            if ticker != record.ticker:
                raise ValueError(
                    f"Portfolio key '{ticker}' does not match record ticker '{record.ticker}'."
                )
        return self

    @classmethod
    def from_records(
        cls,
        records: Iterable[AssetRecord],
        unclassified: Iterable[str] = (),
    ) -> "Portfolio":
        """Build a portfolio from records; a repeated ticker raises ``ValueError``."""
        assets: dict[str, AssetRecord] = {}
        for record in records:
            if record.ticker in assets:
                raise ValueError(f"Duplicate ticker in portfolio: '{record.ticker}'.")
            assets[record.ticker] = record
        return cls(assets=assets, unclassified=frozenset(unclassified))

    @property
    def tickers(self) -> list[str]:
        return list(self.assets)

    @property
    def total_allocation(self) -> float:
        return sum(a.allocation for a in self.assets.values())

    def allocation(self, ticker: str) -> float:
        """Current allocation of ``ticker``, or 0.0 if not held."""
        record = self.assets.get(ticker)
        return record.allocation if record is not None else 0.0

    def bucket(self, asset_class: AssetClass) -> list[AssetRecord]:
        """All records of one asset class, in portfolio order."""
        return [a for a in self.assets.values() if a.asset_class == asset_class]
