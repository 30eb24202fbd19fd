#!/usr/bin/env python3
"""
Simple HTTP server to preview the generated site.
Run this after building the site; it only serves files, it never rebuilds.
"""

from __future__ import annotations

import argparse
import functools
import http.server
import logging
import webbrowser
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SITE_DIR = Path("_site")
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000


def make_server(site_dir: Path, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> http.server.ThreadingHTTPServer:
    handler = functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(site_dir))
    return http.server.ThreadingHTTPServer((host, port), handler)


def serve_site(site_dir: Path = DEFAULT_SITE_DIR, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, open_browser: bool = False) -> int:
    site_path = Path(site_dir)
    if not site_path.is_dir():
        logger.error("Site directory '%s' doesn't exist. Run build_static_site.py first.", site_dir)
        return 1

    httpd = make_server(site_path, host, port)
    bound_host, bound_port = httpd.server_address[:2]
    url = f"http://{bound_host}:{bound_port}/"
    logger.info("Serving %s at %s (Ctrl+C to stop)", site_path, url)

    if open_browser:
        webbrowser.open(url)

    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopped.")
    finally:
        httpd.server_close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Serve a generated site locally.")
    parser.add_argument("site_dir", nargs="?", type=Path, default=DEFAULT_SITE_DIR, help="Folder to serve (default: _site)")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--open", action="store_true", help="Open a browser tab")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return serve_site(args.site_dir, host=args.host, port=args.port, open_browser=args.open)


if __name__ == "__main__":
    raise SystemExit(main())
