"""ZARV schema manager: schema version history and diff engine."""

__version__ = "1.0.0"
