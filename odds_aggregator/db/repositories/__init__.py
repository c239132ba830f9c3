"""Repositories for the odds store."""

from odds_aggregator.db.repositories.odds import OddsRepository

__all__ = ["OddsRepository"]
