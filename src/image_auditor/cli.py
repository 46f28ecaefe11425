"""
Command-line interface for the image auditor.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from image_auditor.config import UNLIMITED, CrawlOptions
from image_auditor.core import crawl
from image_auditor.errors import InvalidInputError
from image_auditor.models import CrawlReport


def print_summary(report: CrawlReport) -> None:
    """Print crawl summary to stderr."""
    domain = report.domain
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("IMAGE AUDIT SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Domain:                   {domain.domain_name}\n")
    sys.stderr.write(f"Pages processed:          {report.total_pages_processed}\n")
    sys.stderr.write(f"Pages analyzed:           {report.pages_analyzed}\n")
    sys.stderr.write(f"Pages with errors:        {domain.pages_with_error_status}\n\n")

    sys.stderr.write(f"Images found:             {domain.total_images_found}\n")
    sys.stderr.write(f"Images analyzed:          {domain.total_images_analyzed}\n")
    sys.stderr.write(
        f"Images without alt:       {domain.total_images_without_alt}"
        f" ({domain.total_images_without_alt_percentage}%)\n"
    )
    sys.stderr.write(f"Average images per page:  {domain.average_images_per_page}\n")
    sys.stderr.write(f"Total image size:         {domain.to_dict()['total_image_size_kb']} KB\n")

    if domain.image_types:
        sys.stderr.write("\nImage types:\n")
        for image_type, count in sorted(domain.image_types.items()):
            sys.stderr.write(f"  {image_type}: {count}\n")

    sys.stderr.write("\n")


def generate_output_path(start_url: str) -> Path:
    """Generate output path: audits/{hostname}_{datetime}.json"""
    parsed = urlparse(start_url)
    hostname = parsed.hostname or "unknown"
    # Sanitize hostname for filename (replace dots with underscores)
    hostname_safe = hostname.replace(".", "_")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    audits_dir = Path("audits")
    audits_dir.mkdir(exist_ok=True)

    return audits_dir / f"{hostname_safe}_{timestamp}.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a website from a URL and audit its images (alt text, types, sizes)."
    )
    parser.add_argument("start_url", nargs="?", help="Start URL (e.g. https://example.com)")
    parser.add_argument("--input", help="JSON input document (startUrl, crawlUrls, maxPages, ...)")
    parser.add_argument("--crawl", action="store_true", default=None, help="Follow internal links to other pages")
    parser.add_argument("--max-pages", type=int, help="Maximum pages to process when crawling (default: 5)")
    parser.add_argument(
        "--max-images-per-page", type=int,
        help=f"Maximum images to analyze per page, {UNLIMITED} for all (default: all)",
    )
    parser.add_argument(
        "--no-size-analysis", dest="size_analysis", action="store_false", default=None,
        help="Skip HEAD requests; guess image types from file extensions",
    )
    parser.add_argument(
        "--no-alt-analysis", dest="alt_analysis", action="store_false", default=None,
        help="Do not list images without alt text",
    )
    parser.add_argument("--timeout", type=float, help="Page request timeout in seconds (default: 30)")
    parser.add_argument("--user-agent", help="User-Agent header")
    parser.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in audits/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    return parser


def options_from_args(args: argparse.Namespace) -> CrawlOptions:
    """Merge the optional --input document with command-line overrides."""
    data = {}
    if args.input:
        try:
            data = json.loads(Path(args.input).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise InvalidInputError(f"Cannot read input file {args.input}: {e}") from e
        if not isinstance(data, dict):
            raise InvalidInputError(f"Input file {args.input} must contain a JSON object")

    options = CrawlOptions.from_dict(data)
    overrides = {
        "start_url": args.start_url,
        "crawl_enabled": args.crawl,
        "max_pages": args.max_pages,
        "max_images_per_page": args.max_images_per_page,
        "size_analysis": args.size_analysis,
        "alt_analysis": args.alt_analysis,
        "user_agent": args.user_agent,
        "request_timeout_ms": int(args.timeout * 1000) if args.timeout is not None else None,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(options, name, value)
    return options


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the image auditor CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        options = options_from_args(args)
        report = crawl(options, verbose=args.verbose)
    except InvalidInputError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    # Print summary if verbose
    if args.verbose:
        print_summary(report)

    json_text = json.dumps(report.to_dict(), ensure_ascii=False, indent=2 if args.pretty else None)

    if args.out == "-":
        print(json_text)
    else:
        # Auto-generate path if not specified
        output_path = Path(args.out) if args.out else generate_output_path(options.start_url)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_text, encoding="utf-8")
        if args.verbose:
            sys.stderr.write(f"Results written to: {output_path}\n")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
