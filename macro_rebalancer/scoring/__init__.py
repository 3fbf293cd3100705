"""
Signal scoring: converts raw indicator readings into bounded directional
scores and blends them into region-weighted composites.

Modules
-------
trend      : compute_trend() — short-history trend signal in [-1, 1].
indicators : Score dataclass + one scorer per indicator + score_indicators().
composite  : regional_score() over the declarative region table, overall_score(),
             market_signal_label() and confidence_label().
"""
