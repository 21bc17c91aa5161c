"""
Kickbase Companion - fantasy football companion for Kickbase leagues.

Serves player news, statistics, market values and club fixtures from a local
store, proxies league schedules from the Kickbase API, and derives per-matchday
views and simple points projections for the player detail page.
"""

__version__ = "0.1.0"

from .config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
