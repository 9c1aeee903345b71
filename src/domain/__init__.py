"""Domain models and types for the crypto tax engine.

This package contains the in-memory (Pydantic) models describing transactions,
acquisition lots and tax reports together with the matching engine itself.
They are independent from persistence models so that business logic and
testing can evolve without DB coupling.
"""

__all__ = [
    "classifier",
    "engine",
    "lots",
    "matcher",
    "report",
    "snapshot",
    "strategies",
    "transactions",
]
