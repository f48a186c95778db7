"""Forum Stage: vote ledger, karma aggregation, and feed ranking."""

__version__ = "0.1.0"
