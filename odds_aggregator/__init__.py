"""Odds aggregation pipeline.

Fetches odds from several upstream providers, normalizes them into one
canonical event schema, persists them and answers comparison queries
(best price per market, line movement history, big movers).
"""

__version__ = "0.3.0"
