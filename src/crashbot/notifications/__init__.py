"""Notification module.

Provides functions for telling the development team about new issues.
"""

from .discord import DiscordNotifier, send_discord

__all__ = [
    "DiscordNotifier",
    "send_discord",
]
