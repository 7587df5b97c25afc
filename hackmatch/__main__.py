"""
hackmatch server entry point.

Start:
    HACKMATCH_ANTHROPIC_API_KEY=sk-ant-... python -m hackmatch --port 8000
"""

from __future__ import annotations

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(prog="hackmatch", description="Run the hackmatch API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    uvicorn.run("hackmatch.api.app:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
