#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def main(argv: list[str] | None = None) -> int:
    _ensure_src_on_path()

    from ctec_scraper.portal.gate import classify
    from ctec_scraper.util.text import extract_essay

    p = argparse.ArgumentParser(
        prog="extract_report_snapshot",
        description=(
            "Run the essay extraction over a saved report text snapshot (e.g. data/debug/*.txt).\n"
            "This is intended for debugging extraction regressions offline (no Playwright, no login)."
        ),
    )
    p.add_argument("--file", required=True, help="Path to a .txt file with the report's rendered body text")
    p.add_argument("--url", default="", help="Optional page URL, used only to classify the snapshot")
    p.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")
    args = p.parse_args(argv)

    body_text = _read_text(args.file)
    chunk = extract_essay(body_text)
    payload = {
        "file": args.file,
        "pageState": classify(body_text, args.url).value,
        "textLength": len(body_text),
        "essayChunk": chunk,
    }

    out_json = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.out:
        Path(args.out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
