"""Blog-to-email agent entrypoint.

Turns a blog URL, raw text or a short prompt into an on-brand HTML email plus
a plain-text companion.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from config import AppConfig, get_config
from models import ContentSource
from services.orchestrator import EmailPipeline, PipelineResult

logger = logging.getLogger(__name__)

_RULE = "=" * 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blog-email-agent",
        description="Generate an HTML email from a blog post, raw text or a prompt.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="URL of a blog post to convert")
    source.add_argument("--text", help="Blog text to convert")
    source.add_argument("--prompt", help='Free-text brief, e.g. "black friday sale"')

    parser.add_argument("--sections", type=Path, help="Section template directory")
    parser.add_argument("--out", type=Path, help="Output directory for generated files")
    parser.add_argument("--brand-guidelines", type=Path, help="Brand guidelines markdown file")
    parser.add_argument("--model-structure", help="Model for the structure stage")
    parser.add_argument("--model-copy", help="Model for the copy stage")
    parser.add_argument("--model-plan", help="Model for --single-pass planning")
    parser.add_argument(
        "--single-pass",
        action="store_true",
        help="Produce the whole plan in one model call instead of structure + copy",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging and tracebacks")
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    overrides = {
        "sections_dir": args.sections,
        "output_dir": args.out,
        "brand_guidelines_path": args.brand_guidelines,
        "model_structure": args.model_structure,
        "model_copy": args.model_copy,
        "model_plan": args.model_plan,
    }
    changes = {key: value for key, value in overrides.items() if value is not None}
    if args.debug:
        changes["debug"] = True
    return replace(config, **changes) if changes else config


def _print_summary(result: PipelineResult) -> None:
    print(_RULE)
    print("EMAIL GENERATED SUCCESSFULLY")
    print(_RULE)
    print(f"Subject: {result.subject}")
    print(f"Preview: {result.preview}")
    print(f"Sections: {' -> '.join(result.sequence)}")
    print(f"HTML: {result.html_path}")
    print(f"Text: {result.text_path}")
    print(f"Duration: {result.duration_seconds:.2f}s")
    print(_RULE)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the agent once and return the process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    debug = args.debug
    try:
        config = apply_overrides(get_config(), args)
        debug = config.debug
        if debug:
            logging.getLogger().setLevel(logging.DEBUG)
        source = ContentSource(url=args.url, text=args.text, prompt=args.prompt)
        result = EmailPipeline.from_config(config).run(source, single_pass=args.single_pass)
    except Exception as exc:  # noqa: BLE001
        logger.error("ERROR: %s", exc, exc_info=debug)
        return 1

    _print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
