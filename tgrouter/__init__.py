"""Webhook update router for Telegram bots."""

__version__ = "0.1.0"
