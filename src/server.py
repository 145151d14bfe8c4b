"""
Process entry point: configure logging and serve the API with uvicorn.

Usage:
    python src/server.py                 # 0.0.0.0:$PORT
    python src/server.py --port 8000 --reload
"""

import argparse
import logging

import uvicorn

import config

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("server")


def main() -> None:
    parser = argparse.ArgumentParser(description="Athlete insights API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=config.PORT)
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev only)")
    args = parser.parse_args()

    log.info("Starting API on %s:%d (%.1f provider calls/min)", args.host, args.port, config.REQUESTS_PER_MINUTE)
    uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload, log_config=None)


if __name__ == "__main__":
    main()
