"""Core deployment logic: configuration, state, steps and the migration engine."""

__all__ = [
    "config",
    "context",
    "engine",
    "state",
    "step",
]
