from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import AppConfig, load_config
from .errors import CtecError, InputError
from .logging_config import configure_logging
from .models import parse_course_arg
from .portal.client import CtecPortalClient
from .storage import write_record
from .summarize import summarize_record


logger = logging.getLogger("ctec_scraper")


def _add_browser_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml, optional)")
    p.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser headless. Only works if the saved profile is already logged in.",
    )
    p.add_argument("--slowmo-ms", type=int, default=None, help="Playwright slow motion in milliseconds.")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ctec-scraper")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    fetch = sub.add_parser(
        "fetch",
        help="Find a course's most recent CTEC, extract its written comments, and save them as JSON",
    )
    fetch.add_argument("course", nargs="+", help='Course identifier, e.g. "COMP_SCI 212" or "COMP_SCI 212-1"')
    _add_browser_args(fetch)
    fetch.add_argument("--no-summary", action="store_true", help="Skip the OpenAI summary even if a key is set.")
    fetch.add_argument("--out-dir", default="", help="Output directory for the JSON record (default: data/raw)")
    fetch.add_argument("--print", dest="print_json", action="store_true", help="Also print the record to stdout.")

    list_courses = sub.add_parser(
        "list-courses",
        help="Search one subject (Undergraduate) and print the first course rows (helps check course numbers)",
    )
    list_courses.add_argument("subject", help='Subject code, e.g. "COMP_SCI"')
    _add_browser_args(list_courses)
    list_courses.add_argument("--limit", type=int, default=5, help="How many rows to print (default: 5)")

    return p


def _client_from_config(cfg: AppConfig) -> CtecPortalClient:
    pc = cfg.portal
    return CtecPortalClient(
        start_url=pc.start_url,
        poll_interval_ms=pc.poll_interval_ms,
        report_poll_interval_ms=pc.report_poll_interval_ms,
        notice_interval_s=pc.notice_interval_s,
        popup_timeout_ms=pc.popup_timeout_ms,
    )


def _browser_kwargs(cfg: AppConfig, args: argparse.Namespace) -> dict:
    slow_mo = cfg.portal.slow_mo_ms if args.slowmo_ms is None else args.slowmo_ms
    return {
        "profile_dir": cfg.portal.profile_dir,
        "headless": bool(args.headless or cfg.portal.headless),
        "slow_mo_ms": slow_mo,
        "debug_dir": cfg.output.debug_dir,
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Bootstrap logging early so config errors are visible.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        cfg = load_config(args.config)
    except (ValidationError, yaml.YAMLError, OSError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path)

    try:
        if args.cmd == "fetch":
            return _cmd_fetch(cfg, args)
        if args.cmd == "list-courses":
            return _cmd_list_courses(cfg, args)
    except InputError as e:
        logger.error("%s", e)
        return 2
    except CtecError as e:
        logger.error("%s failed: %s", e.stage, e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted; the run must be restarted from the beginning.")
        return 130

    raise AssertionError(f"unhandled command {args.cmd!r}")


def _cmd_fetch(cfg: AppConfig, args: argparse.Namespace) -> int:
    # Fail fast on malformed input, before any browser is launched.
    query = parse_course_arg(" ".join(args.course))
    logger.info("Input normalized -> Subject: %s, Number: %s", query.subject, query.number)

    client = _client_from_config(cfg)
    record = asyncio.run(client.fetch_report(query, **_browser_kwargs(cfg, args)))

    if not args.no_summary:
        summary = summarize_record(record, cfg.summary)
        if summary is not None:
            record = record.model_copy(update={"summary": summary})

    out_dir = args.out_dir or cfg.output.out_dir
    out_path = write_record(out_dir, record)
    logger.info("Saved to: %s", out_path)

    if args.print_json:
        print(json.dumps(record.to_json_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_list_courses(cfg: AppConfig, args: argparse.Namespace) -> int:
    subject = (args.subject or "").strip().upper()
    if not re.fullmatch(r"[A-Z_]+", subject):
        raise InputError(f'Invalid subject: "{subject}". Example: "COMP_SCI"')

    client = _client_from_config(cfg)
    rows = asyncio.run(client.fetch_course_list(subject, limit=args.limit, **_browser_kwargs(cfg, args)))
    for row in rows:
        print(f"- {row}")
    return 0
