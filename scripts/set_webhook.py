#!/usr/bin/env python3
"""
Register the bot's webhook with Telegram.
Usage: python set_webhook.py <webhook_url> [certificate.pem]

Reads TGROUTER_BOT_TOKEN (and optionally TGROUTER_API_BASE_URL) from the
environment or .env.
"""

import sys

from tgrouter.config import settings
from tgrouter.services.telegram_service import TelegramAPIError, TelegramService


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(__doc__.strip())
        return 2
    if not settings.bot_token:
        print("TGROUTER_BOT_TOKEN is not set")
        return 2

    url = argv[1]
    certificate = argv[2] if len(argv) > 2 else None

    telegram = TelegramService(settings.bot_token, base_url=settings.api_base_url, timeout=settings.request_timeout)
    try:
        result = telegram.set_webhook(url, certificate_path=certificate)
    except TelegramAPIError as e:
        print(f"Error: {e}")
        return 1

    print(f"Response: {result}")
    return 0 if result.get("ok") else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
