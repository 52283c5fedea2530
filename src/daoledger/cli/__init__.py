"""Command-line interface for the governance ledger."""
