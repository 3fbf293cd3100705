"""
Portfolio store — loads current allocations and asset metadata from CSV.

Submodules:
  store  — parse_allocation / parse_asset_class / parse_region /
           parse_sensitivity field parsers and load_portfolio()
"""
