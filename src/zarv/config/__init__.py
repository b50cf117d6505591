"""Settings access for zarv.

The CLI resolves settings once (environment, `.env`, then command line
overrides) and stores them here; `initialize_services` reads them back.
"""

from zarv.config.settings import Settings

_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment once."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Replace the active settings (e.g. with command line overrides applied).

    Args:
        settings: Settings to use from now on
    """
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Drop the active settings so the next access reloads the environment."""
    global _settings
    _settings = None


__all__ = ["Settings", "get_settings", "set_settings", "reset_settings"]
