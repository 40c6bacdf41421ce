from __future__ import annotations

import argparse
import json
import logging
import re
import sys
import zipfile
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import yaml
from lxml import etree

from .config import AppConfig, load_config
from .document import Document
from .errors import DocxspliceError
from .logging_utils import setup_logging
from .pages import parse_pages_spec

_PAGES_SUFFIX_RE = re.compile(r"^[0-9,\-\s]+$")
_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", default=None, help="Path to YAML config.")
    common.add_argument("--log", default=None, help="Also write the log to this file.")

    p = argparse.ArgumentParser(prog="docxsplice", description="Merge, split and fill DOCX documents.")
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("info", parents=[common], help="Show page count and page ranges.")
    i.add_argument("--input", "-i", required=True, help="Path to .docx")
    i.add_argument("--json", action="store_true", help="Print the page list as JSON.")

    b = sub.add_parser("add-break", parents=[common], help="Append page breaks to the end of a document.")
    b.add_argument("--input", "-i", required=True, help="Path to source .docx")
    b.add_argument("--output", "-o", required=True, help="Path to output .docx")
    b.add_argument("--count", type=int, default=1, help="Number of page breaks to append.")

    r = sub.add_parser("remove-page", parents=[common], help="Remove one page (1-based).")
    r.add_argument("--input", "-i", required=True, help="Path to source .docx")
    r.add_argument("--output", "-o", required=True, help="Path to output .docx")
    r.add_argument("--page", type=int, required=True, help="1-based page number to remove.")

    m = sub.add_parser("merge", parents=[common], help="Concatenate documents or selected pages.")
    m.add_argument(
        "inputs",
        nargs="+",
        help="Input .docx files, optionally suffixed with 1-based pages: report.docx:1,3-5",
    )
    m.add_argument("--output", "-o", required=True, help="Path to output .docx")
    m.add_argument("--no-break", action="store_true", help="Do not insert a page break between inputs.")

    t = sub.add_parser("render", parents=[common], help="Fill {placeholders} in body, headers and footers.")
    t.add_argument("--input", "-i", required=True, help="Path to template .docx")
    t.add_argument("--output", "-o", required=True, help="Path to output .docx")
    t.add_argument("--data", "-d", required=True, help="JSON or YAML file with placeholder values.")
    t.add_argument("--remove-missing", action="store_true", help="Delete placeholders that have no value.")
    t.add_argument("--pattern", default=None, help="Placeholder regex with exactly one capture group.")
    return p


def split_input_spec(value: str) -> tuple[Path, list[int] | None]:
    """'a.docx:1,3-4' -> (Path('a.docx'), [0, 2, 3]); pages are returned 0-based."""
    path_part, sep, pages_part = value.rpartition(":")
    if sep and path_part and _PAGES_SUFFIX_RE.match(pages_part):
        return Path(path_part), [page - 1 for page in parse_pages_spec(pages_part)]
    return Path(value), None


def load_data(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8-sig")
    data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Template data must be a mapping, got {type(data).__name__}: {path}")
    return data


def _run(args: argparse.Namespace, cfg: AppConfig) -> int:
    if args.cmd == "info":
        doc = Document.from_path(args.input)
        pages = doc.get_pages()
        if args.json:
            payload = {
                "input_path": str(args.input),
                "page_count": len(pages),
                "pages": [asdict(page) for page in pages],
            }
            print(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            print(f"{args.input}: {len(pages)} page(s), {len(doc.body_elements)} body element(s)")
            for page in pages:
                span = "empty" if page.is_empty else f"elements {page.start_element}-{page.end_element}"
                print(f"  page {page.index + 1}: {span}")
        return 0

    if args.cmd == "add-break":
        doc = Document.from_path(args.input)
        for _ in range(max(0, int(args.count))):
            doc.add_page_break()
        doc.save(args.output)
        return 0

    if args.cmd == "remove-page":
        doc = Document.from_path(args.input)
        doc.remove_page(int(args.page) - 1)
        doc.save(args.output)
        return 0

    if args.cmd == "merge":
        target = Document.create()
        if args.no_break:
            cfg = replace(cfg, merge=replace(cfg.merge, add_page_break_before=False))
        for raw in args.inputs:
            path, pages = split_input_spec(raw)
            _logger.info("Merging %s%s", path, "" if pages is None else f" pages {[p + 1 for p in pages]}")
            target.merge(path, cfg.merge_options(pages))
        target.save(args.output)
        return 0

    if args.cmd == "render":
        template_cfg = cfg.template
        if args.pattern is not None:
            template_cfg = replace(template_cfg, pattern=str(args.pattern))
        if args.remove_missing:
            template_cfg = replace(template_cfg, remove_missing=True)
        cfg = replace(cfg, template=template_cfg)

        doc = Document.from_path(args.input)
        count = doc.render(load_data(Path(args.data)), cfg.template_options())
        doc.save(args.output)
        print(f"Replaced {count} placeholder(s)")
        return 0

    print(f"Unknown command: {args.cmd}", file=sys.stderr)
    return 2


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else AppConfig()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Cannot load config: {e}", file=sys.stderr)
        return 2

    log_path = args.log if args.log is not None else cfg.log_path
    setup_logging(Path(log_path) if log_path else None, level=cfg.log_level_value)

    try:
        return _run(args, cfg)
    except (DocxspliceError, ValueError, re.error, OSError, zipfile.BadZipFile, etree.XMLSyntaxError) as e:
        _logger.error("%s failed: %s", args.cmd, e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
