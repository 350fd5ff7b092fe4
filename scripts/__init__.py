"""Command line entry points for the settlement ledger."""
