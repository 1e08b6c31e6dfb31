"""Command line interface for running the text analyses."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from textprops.services.analysis import AnalysisConfig, build_analysis_container
from textprops.services.analysis.app import AnalysisResponse, LanguageResponse, SpanResponse
from textprops.tagging import (
    AssetError,
    LanguageIdentificationResult,
    RankerInconsistencyError,
    Span,
    TaggerOptions,
    TagScheme,
    TextPropertyService,
    TokenGranularity,
)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="textprops - language identification and text tagging"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: TEXTPROPS_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser(
        "analyze", help="Runs language, sentiment, lexical and entity analyses"
    )
    analyze.add_argument("text", help="Text to analyse ('-' reads stdin)")
    analyze.add_argument(
        "--concurrent",
        action="store_true",
        help="Runs the tagging analyses concurrently",
    )
    analyze.add_argument(
        "--json", action="store_true", help="Prints the result as JSON"
    )

    language = subparsers.add_parser(
        "language", help="Identifies the dominant language of a text"
    )
    language.add_argument("text", help="Text to analyse ('-' reads stdin)")
    language.add_argument(
        "--json", action="store_true", help="Prints the result as JSON"
    )

    tag = subparsers.add_parser("tag", help="Tags a text with a single scheme")
    tag.add_argument("text", help="Text to analyse ('-' reads stdin)")
    tag.add_argument(
        "--scheme",
        choices=[scheme.value for scheme in TagScheme],
        default=TagScheme.LEXICAL_CLASS.value,
    )
    tag.add_argument(
        "--granularity",
        choices=[granularity.value for granularity in TokenGranularity],
        default=None,
        help="Token unit (default: the scheme's own)",
    )
    tag.add_argument("--omit-punctuation", action="store_true")
    tag.add_argument("--omit-whitespace", action="store_true")
    tag.add_argument("--join-names", action="store_true")
    tag.add_argument(
        "--json", action="store_true", help="Prints the result as JSON"
    )

    return parser.parse_args(argv)


def _read_text(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _options(args: argparse.Namespace) -> TaggerOptions | None:
    if not (args.omit_punctuation or args.omit_whitespace or args.join_names):
        return None
    return TaggerOptions(
        omit_punctuation=args.omit_punctuation,
        omit_whitespace=args.omit_whitespace,
        join_names=args.join_names,
    )


def _language_table(result: LanguageIdentificationResult) -> Table:
    table = Table(title="Language", show_header=True)
    table.add_column("Hypothesis")
    table.add_column("Probability", justify="right")
    dominant = result.dominant or "(Unknown)"
    table.add_row(f"[bold]Dominant: {dominant}[/bold]", "")
    if not result.hypotheses:
        table.add_row("[dim]No hypotheses available.[/dim]", "")
    for language, probability in result.ranked():
        table.add_row(f"- {language}", f"{probability:.2f}")
    return table


def _spans_table(title: str, spans: Sequence[Span]) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Span")
    table.add_column("Tag")
    table.add_column("Probability", justify="right")
    if not spans:
        table.add_row("[dim]No spans.[/dim]", "", "")
    for span in spans:
        table.add_row(f"[bold]{escape(span.text)}[/bold]", "", "")
        if not span.tag_hypotheses:
            table.add_row("", "[dim]No tags available.[/dim]", "")
        for tag, probability in span.ranked():
            table.add_row("", f"- {escape(tag)}", f"{probability:.2f}")
    return table


def run(args: argparse.Namespace, service: TextPropertyService, console: Console) -> int:
    """Execute the parsed command and return the process exit code."""

    logger = logging.getLogger("textprops.cli")
    text = _read_text(args.text)
    if not text.strip():
        console.print("[yellow]Nothing to analyse: the text is empty.[/yellow]")
        return 1

    try:
        if args.command == "language":
            result = service.identify_language(text)
            if args.json:
                console.print_json(LanguageResponse.from_result(result).model_dump_json())
            else:
                console.print(_language_table(result))
        elif args.command == "tag":
            scheme = TagScheme(args.scheme)
            granularity = TokenGranularity(args.granularity) if args.granularity else None
            spans = asyncio.run(
                service.tag(
                    text,
                    scheme,
                    granularity=granularity,
                    options=_options(args),
                )
            )
            if args.json:
                console.print_json(
                    data=[SpanResponse.from_dataclass(span).model_dump() for span in spans]
                )
            else:
                console.print(_spans_table(scheme.value, spans))
        elif args.command == "analyze":
            analysis = asyncio.run(service.analyze(text, concurrent=args.concurrent))
            if args.json:
                console.print_json(AnalysisResponse.from_result(analysis).model_dump_json())
            else:
                console.print(_language_table(analysis.language))
                console.print(_spans_table("Sentiment Score", analysis.sentiment))
                console.print(_spans_table("Lexical", analysis.lexical))
                console.print(_spans_table("Entities", analysis.entities))
    except (AssetError, RankerInconsistencyError) as exc:
        logger.debug("Analysis failed", exc_info=True)
        console.print(f"[red]{exc}[/red]")
        return 2
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    console = Console()
    level_name = args.log_level or os.getenv("TEXTPROPS_LOG_LEVEL", "INFO")
    handler = RichHandler(console=console, markup=True, rich_tracebacks=True)
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    container = build_analysis_container(AnalysisConfig.from_env())
    return run(args, container.service, console)


if __name__ == "__main__":
    sys.exit(main())
