"""Protean Engine runner for the storefront.

With ``PROTEAN_ENV=production`` domain events are processed asynchronously;
this Engine picks them up and runs the event handlers, among them the one
sending order confirmation emails.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from protean.server.engine import Engine

from storefront.channel import build_mailer, configure_mailer
from storefront.config import get_settings


async def run():
    from storefront.domain import storefront

    storefront.init()
    configure_mailer(build_mailer(get_settings()))
    await Engine(storefront).run()


def main():
    asyncio.run(run())


if __name__ == "__main__":
    main()
