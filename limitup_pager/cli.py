from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from limitup_pager import __version__ as TOOL_VERSION
from limitup_pager.config import Settings, configure_logging, load_settings
from limitup_pager.contracts import build_contract, build_run_summary
from limitup_pager.errors import MissingColumnError
from limitup_pager.loader import load_rows
from limitup_pager.pipeline import ProcessResult, process_dataset
from limitup_pager.workbook import export_pages

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_FAILURE) -> None:
        super().__init__(message)
        self.code = code


class PagerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(f"{self.format_usage().strip()}\n{message}", EXIT_FAILURE)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        print(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = PagerArgumentParser(
        prog="limitup-pager",
        description="Normalise a limit-up export and split it into category-priority pages.",
    )
    parser.add_argument("input", help="Input spreadsheet (.xlsx/.xls/.ods/.csv)")
    parser.add_argument("output_dir", nargs="?", default=".", help="Output directory (default: current directory)")
    parser.add_argument("--max-constraint", type=positive_int, default=None, help="Page budget: 2 x reasons + rows (default 33)")
    parser.add_argument("--json-summary", dest="json_summary", help="Also write a machine-readable export summary here")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("--version", action="version", version=TOOL_VERSION)
    return parser


def render_columns_report(result: ProcessResult) -> str:
    columns = result.columns
    lines = [
        f"Original columns: {', '.join(result.original_columns)}",
        f"Cleaned columns: {', '.join(result.cleaned_columns)}",
        "Resolved columns:",
        f"  最终涨停时间: {columns.final_limit_time}",
        f"  连续涨停天数(天): {columns.consecutive_limit_days}",
        f"  涨停原因: {columns.limit_reason}",
        f"  涨停原因类别: {columns.limit_reason_category}",
    ]
    return "\n".join(lines)


def render_totals(result: ProcessResult) -> str:
    lines = [
        "Done:",
        f"  Records: {len(result.rows)}",
        f"  Pages: {len(result.pages)}",
        f"  Reasons: {len(result.category_stats)}",
    ]
    if result.diagnostics:
        lines.append(f"  Category cells cleared after errors: {len(result.diagnostics)}")
    return "\n".join(lines)


def build_export_summary(
    result: ProcessResult,
    *,
    input_path: Path,
    outputs: dict[str, Any],
    warnings: list[str],
) -> dict[str, Any]:
    contract = build_contract("limitup_pager.export_summary")
    output_paths = [*outputs["pages"], outputs["stats"]]
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "columns": result.columns._asdict(),
        "max_constraint": result.max_constraint,
        "pages": [
            {"page_number": number, "record_count": len(page), "file": str(path)}
            for number, (page, path) in enumerate(zip(result.pages, outputs["pages"]), start=1)
        ],
        "stats_file": str(outputs["stats"]),
        "category_stats": [stat.as_dict() for stat in result.category_stats],
        "diagnostics": [item.as_dict() for item in result.diagnostics],
        "run_summary": build_run_summary(
            tool="limitup-pager",
            input_path=input_path,
            output_paths=output_paths,
            warnings=warnings,
            metrics={
                "record_count": result.record_count,
                "page_count": len(result.pages),
                "reason_count": len(result.category_stats),
                "cell_errors": len(result.diagnostics),
            },
        ),
    }


def run(args: argparse.Namespace, settings: Settings) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"Error: input file not found: {input_path}")
        return EXIT_FAILURE

    max_constraint = args.max_constraint or settings.max_constraint
    output_dir = Path(args.output_dir)
    base_name = input_path.stem

    emit_human(f"Processing: {input_path}", quiet=args.quiet)
    try:
        loaded = load_rows(input_path)
        rows = loaded["rows"]
        emit_human(f"Input records: {len(rows)}", quiet=args.quiet)
        for warning in loaded["warnings"]:
            emit_human(f"Warning: {warning}", quiet=args.quiet)

        result = process_dataset(rows, max_constraint, category_width=settings.category_width)
        emit_human(render_columns_report(result), quiet=args.quiet)
        emit_human(render_totals(result), quiet=args.quiet)

        outputs = export_pages(result.page_dicts(), result.category_stats, output_dir, base_name)
        for page, path in zip(result.pages, outputs["pages"]):
            emit_human(f"  Exported: {path} (records: {len(page)})", quiet=args.quiet)
        emit_human(f"  Exported: {outputs['stats']}", quiet=args.quiet)

        if args.json_summary:
            summary_path = Path(args.json_summary)
            write_json(
                summary_path,
                build_export_summary(result, input_path=input_path, outputs=outputs, warnings=loaded["warnings"]),
            )
            emit_human(f"Export summary: {summary_path}", quiet=args.quiet)
    except MissingColumnError as exc:
        eprint(f"Error: {exc}")
        return EXIT_FAILURE
    except Exception as exc:
        eprint(f"Error while processing file: {exc}")
        return EXIT_FAILURE

    emit_human("Finished.", quiet=args.quiet)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        try:
            settings = load_settings()
        except ValueError as exc:
            raise CliError(f"Error: {exc}", EXIT_FAILURE) from exc
        configure_logging(settings)
        return run(args, settings)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
