"""CLI entrypoints for repolens commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from .logging import configure_logging
from .models import ContextSelection, RepoAnalysis
from .orchestrator import ContextOptions, Orchestrator
from .repo_scanner import ScanIOError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_json_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the result as JSON instead of a text summary.",
    )


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("value must be at least 1")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repolens",
        description="Classify repositories and select context for code generation.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Classify a repository and list gaps and recommendations.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_json_option(analyze_parser)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )

    context_parser = subparsers.add_parser(
        "context",
        help="Select the files most relevant to a change request.",
    )
    _add_verbose_option(context_parser, suppress_default=True)
    _add_json_option(context_parser)
    context_parser.add_argument("path", help="Path to the repository root.")
    context_parser.add_argument("intent", help="Free-text description of the change.")
    context_parser.add_argument(
        "--max-tokens",
        type=_positive_int,
        default=None,
        help="Token budget for the selected files (defaults to config, then 8000).",
    )
    context_parser.add_argument(
        "--max-files",
        type=_positive_int,
        default=None,
        help="Maximum number of files to select (defaults to config, then 10).",
    )
    context_parser.add_argument(
        "--related",
        action="store_true",
        help="Also pull in files imported by the target file.",
    )
    context_parser.add_argument(
        "--depth",
        type=_positive_int,
        default=None,
        help="Import hops to follow with --related (defaults to config, then 2).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repolens commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    orchestrator = Orchestrator()

    if args.command == "analyze":
        try:
            analysis = orchestrator.run_analysis(args.path)
        except ScanIOError as exc:
            parser.exit(1, f"repolens: {exc}\n")
        if args.json:
            _print_json(analysis.to_dict())
        else:
            print(_format_analysis(analysis))
    elif args.command == "context":
        options = ContextOptions(
            max_tokens=args.max_tokens,
            max_files=args.max_files,
            include_related=bool(args.related),
            depth=args.depth,
        )
        try:
            selection = orchestrator.run_context(args.path, args.intent, options)
        except ScanIOError as exc:
            parser.exit(1, f"repolens: {exc}\n")
        if args.json:
            _print_json(selection.to_dict())
        else:
            print(_format_selection(selection), end="")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _format_analysis(analysis: RepoAnalysis) -> str:
    quality = analysis.quality
    lines = [
        f"Repository: {analysis.root}",
        f"Classification: {analysis.classification.value}",
        f"Code: {'yes' if analysis.has_code else 'no'}  Docs: {'yes' if analysis.has_docs else 'no'}",
    ]
    if analysis.project_config and analysis.project_config.get("name"):
        lines.append(f"Project: {analysis.project_config['name']}")
    if analysis.has_code:
        lines.append(
            f"Framework: {quality.framework}  Design system: {quality.design_system.value}  "
            f"Package manager: {quality.package_manager.value}"
        )
        lines.append(
            f"Files: {quality.metrics.file_count}  LOC: {quality.metrics.loc_count}  "
            f"Estimated test coverage: {quality.metrics.test_coverage_estimate}%"
        )
    if analysis.features:
        lines.append("")
        lines.append(f"Features ({len(analysis.features)}):")
        for feature in analysis.features:
            lines.append(f"  - [{feature.priority.value}] {feature.name}")
    if analysis.gaps:
        lines.append("")
        lines.append(f"Gaps ({len(analysis.gaps)}):")
        for gap in analysis.gaps:
            location = f"{gap.file_path}:{gap.line_number}" if gap.line_number else gap.file_path
            lines.append(f"  - [{gap.priority.value}] {gap.kind.value} {location} {gap.description}")
    if analysis.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        lines.extend(f"  - {item}" for item in analysis.improvements())
    if analysis.skipped:
        lines.append("")
        lines.append(f"Skipped {len(analysis.skipped)} file(s); run with --verbose for details.")
    lines.append("")
    lines.append(analysis.file_tree)
    return "\n".join(lines)


def _format_selection(selection: ContextSelection) -> str:
    header = (
        f"Selected {len(selection.candidates)} file(s), "
        f"{selection.total_tokens}/{selection.max_tokens} tokens\n"
    )
    return header + selection.text


if __name__ == "__main__":
    main(sys.argv[1:])
