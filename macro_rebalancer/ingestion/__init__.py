"""
Ingestion layer — indicator sources, caching, and snapshot persistence.

Submodules:
  fred_client     — FRED series observations (latest value + history)
  statcan_client  — Statistics Canada vector data (home-market CPI index)
  yahoo_client    — Yahoo Finance chart API (latest volatility index close)
  cache           — Versioned JSON file cache with per-key TTL
  derive          — Pure transforms: CPI year-over-year, GDP direction,
                    monthly averages of daily series
  collector       — IndicatorCollector: builds an IndicatorSnapshot, plus
                    check_feeds() health check
  snapshot        — Save / load an IndicatorSnapshot as a JSON envelope

Credential placement (.env, gitignored):
  FRED_API_KEY    — required for every FRED-backed indicator
"""
