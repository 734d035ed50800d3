import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import uvicorn

from medstock.config import get_settings


def parse_args():
    parser = argparse.ArgumentParser(description="Run the pharmacy stock API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes.")
    return parser.parse_args()


def main():
    args = parse_args()
    uvicorn.run(
        "medstock.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=get_settings().LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
