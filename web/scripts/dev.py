#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = ["livereload", "httpx", "rich"]
# ///
"""Theme dev server: rebuild on change, upload to Shopify, then reload."""

from __future__ import annotations

import argparse
import logging
import sys
import webbrowser

from livereload import Server
from tornado.ioloop import IOLoop

from config import ConfigError, load_settings
from session import DevSession

OPEN_BROWSER_DELAY = 0.5


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Theme dev server")
    parser.add_argument(
        "--env", default="development", help="Config environment to use"
    )
    parser.add_argument("--port", type=int, help="Override the server port")
    parser.add_argument(
        "--no-browser", action="store_true", help="Do not open the theme preview"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = load_settings(args.env)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        sys.exit(1)
    if args.port:
        settings.port = args.port

    settings.dist_dir.mkdir(parents=True, exist_ok=True)
    session = DevSession(settings)

    server = Server()
    server.setHeader("Access-Control-Allow-Origin", settings.shop_url)

    # Reloads are sent by the session once uploads finish, never by the watcher
    server.watch(str(settings.src_dir / "**" / "*"), session.rebuild, delay="forever")

    loop = IOLoop.current()
    loop.add_callback(session.rebuild)
    if not args.no_browser:
        loop.call_later(OPEN_BROWSER_DELAY, webbrowser.open, settings.preview_url)

    try:
        server.serve(root=str(settings.dist_dir), port=settings.port)
    finally:
        # Let queued uploads finish before the HTTP client goes away
        loop.run_sync(session.aclose)


if __name__ == "__main__":
    main()
