"""
Settlement Kernel

Shared foundation for the settlement ledger:
- Structured JSON logging
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Settlement domain types (tagged union) and amount coercion
- Document persistence (SQLAlchemy) behind a record store capability
"""

__version__ = "0.1.0"
