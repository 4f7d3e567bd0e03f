"""
Command-line interface.

Every subcommand prints its result as JSON on stdout. Exit codes: 0 on
success, 1 on configuration or unexpected errors, 2 on invalid input or
unknown identifiers.
"""

import argparse
import json
import sys
import traceback
from typing import Any, Callable, Dict, List, Optional

from appdiscovery.core.config import get_config, validate_config
from appdiscovery.core.exceptions import CatalogRequestError
from appdiscovery.core.logging import setup_logging
from appdiscovery.service import CatalogService


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="appdiscovery",
        description="Crawl the MacUpdate catalog and reconcile entries with the Mac App Store.",
    )
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL)")
    sub = ap.add_subparsers(dest="command", required=True)

    crawl = sub.add_parser("crawl", help="Fetch the next page(s) of a category and list new item URLs")
    crawl.add_argument("category_url")
    crawl.add_argument("--limit", type=int, default=None, help="Max new item URLs to return")
    crawl.add_argument("--pages", type=int, default=None, help="Pages to advance in this call")
    crawl.add_argument("--reset", action="store_true", help="Forget previous progress first")

    imp = sub.add_parser("import-page", help="Import every item of a tracked page")
    imp.add_argument("session_id")
    imp.add_argument("--page", type=int, default=None, help="Page number (default: the session's)")

    rec = sub.add_parser("reconcile", help="Match catalog entries against the Mac App Store")
    rec.add_argument("entry_ids", nargs="+")
    rec.add_argument("--auto-apply", action="store_true", help="Write confident matches back")

    one = sub.add_parser("reconcile-one", help="Match one entry and apply a confident match")
    one.add_argument("entry_id")

    attempts = sub.add_parser("attempts", help="Show the match attempt history of an entry")
    attempts.add_argument("app_id")

    progress = sub.add_parser("progress", help="Show crawl/import progress of a category")
    progress.add_argument("category_url")

    reset = sub.add_parser("reset", help="Delete a category's crawl progress")
    reset.add_argument("category_url")

    errors = sub.add_parser("errors", help="Summarize recently logged errors")
    errors.add_argument("--domain", default=None, help="Source domain (default: host of SOURCE_BASE_URL)")
    errors.add_argument("--limit", type=int, default=None, help="Max errors to read (default: 100)")
    errors.add_argument("--component", default=None, help="crawler, matching, db or unknown")

    return ap


COMMANDS: Dict[str, Callable[[CatalogService, argparse.Namespace], Any]] = {
    "crawl": lambda svc, a: svc.crawl_next_page(a.category_url, limit=a.limit, pages=a.pages, reset=a.reset),
    "import-page": lambda svc, a: svc.import_page(a.session_id, page_number=a.page),
    "reconcile": lambda svc, a: svc.reconcile(a.entry_ids, auto_apply=a.auto_apply),
    "reconcile-one": lambda svc, a: svc.reconcile_one(a.entry_id),
    "attempts": lambda svc, a: svc.match_attempts(a.app_id),
    "progress": lambda svc, a: svc.category_progress(a.category_url),
    "reset": lambda svc, a: svc.reset_category(a.category_url),
    "errors": lambda svc, a: svc.error_report(domain=a.domain, limit=a.limit, component=a.component),
}


def main(argv: Optional[List[str]] = None, service: Optional[CatalogService] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        validate_config()
    except ValueError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1

    config = get_config()
    setup_logging(level=args.log_level or config.log_level, log_dir=config.log_dir)

    try:
        svc = service or CatalogService()
        _emit(COMMANDS[args.command](svc, args))
    except CatalogRequestError as e:
        _emit(e.to_dict())
        return 2
    except KeyboardInterrupt:
        print("\n[abort] KeyboardInterrupt", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"[fatal] {e}", file=sys.stderr)
        traceback.print_exc()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
