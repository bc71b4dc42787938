"""Ballot ledger: voter, candidate and vote records over a key-value world state."""

__version__ = "0.1.0"
