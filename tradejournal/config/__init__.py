# Trade Journal Configuration

from tradejournal.config.logging import configure_logging
from tradejournal.config.settings import JournalSettings, get_settings, load_settings

__all__ = [
    "configure_logging",
    "JournalSettings",
    "get_settings",
    "load_settings",
]
