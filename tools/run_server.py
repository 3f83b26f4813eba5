"""
Leaderboard Server
==================

Run the Lab Panic session and leaderboard API.

Usage:
    python -m tools.run_server [--host HOST] [--port PORT] [--memory]

Configuration comes from environment variables (DATABASE_URL, SESSION_TTL_SEC,
REAPER_INTERVAL_SEC, PUBLIC_BASE_URL, ...); see lab_panic/leaderboard/config.py.
"""

import argparse
import logging
import sys

from lab_panic.leaderboard import create_app
from lab_panic.leaderboard.config import Config


def main():
    parser = argparse.ArgumentParser(description="Run the Lab Panic leaderboard server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8787, help="Port (default: 8787)")
    parser.add_argument("--memory", action="store_true", help="Keep sessions and scores in memory only")
    parser.add_argument("--debug", action="store_true", help="Flask debug mode")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config_class = Config
    if args.memory:
        class MemoryConfig(Config):
            SCORE_STORE = 'memory'
        config_class = MemoryConfig

    app = create_app(config_class)
    print(f"Lab Panic server on http://{args.host}:{args.port} (store: {app.config['SCORE_STORE']})")
    # The reloader would start a second reaper thread
    app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
