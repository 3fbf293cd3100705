"""
macro_rebalancer.reporting — Formatting and export of engine results.

It does NOT compute anything new — it renders what the scoring and
rebalancing packages already produced.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
  export     — JSON audit dump and flat CSV export of a RebalanceReport.
"""
