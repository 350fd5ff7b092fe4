"""
settlement_kernel.domain -- Pure domain types for the settlement ledger.

ZERO I/O. Nothing here touches the database, the clock or the filesystem;
time is always passed in by the caller.
"""
