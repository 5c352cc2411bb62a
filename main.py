# main.py
"""
Command line entry point:
1. Load config & set up logging.
2. Extract the article behind the given URL.
3. Print it to stdout as JSON.

Exit status is 0 on success, 2 when the page holds no article and 1 on any
other failure.
"""

import argparse
import json
import logging
import sys

from cleanread.config import load_config
from cleanread.exceptions import CleanReadError, ExtractionFailed
from cleanread.pipeline import extract_article


# ----------------------------------------------------------------------
# Load configuration once at module import time
cfg = load_config()
# ----------------------------------------------------------------------


def setup_logging(verbose: bool = False) -> None:
    """
    Configure the root logger according to `log_level` from config.
    Logs are emitted to stderr so stdout only carries the JSON result.
    """
    level = logging.DEBUG if verbose else getattr(logging, cfg["log_level"].upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract the readable article from a web page")
    parser.add_argument("url", help="Absolute URL of the page")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point of the CleanRead CLI.
    """
    args = parse_args(argv)
    setup_logging(args.verbose)
    log = logging.getLogger(__name__)

    try:
        article = extract_article(args.url, config=cfg)
    except ExtractionFailed as e:
        log.warning(f"No article found at {args.url} ({e.reason})")
        return 2
    except CleanReadError as e:
        log.error(f"Failed to extract {args.url}: {type(e).__name__}")
        return 1

    json.dump(article.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


# ----------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
