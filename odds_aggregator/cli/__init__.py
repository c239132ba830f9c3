"""Command-line interface for the odds aggregator."""

from odds_aggregator.cli.main import cli

__all__ = ["cli"]
