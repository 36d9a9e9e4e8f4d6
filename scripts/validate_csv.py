"""
Validate a transaction CSV from the command line without touching the database.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from app.domain.upload_errors import UploadRejectedError
from app.services.upload_orchestrator import UploadOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate a transaction CSV file.")
    parser.add_argument("path", type=Path, help="CSV file to validate.")
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the result as JSON instead of text.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    path: Path = args.path

    try:
        content = path.read_bytes()
    except OSError as exc:
        print(f"Cannot read {path}: {exc.strerror}", file=sys.stderr)
        return 1

    orchestrator = UploadOrchestrator()
    try:
        result = orchestrator.process(file_name=path.name, content=content)
    except UploadRejectedError as exc:
        if args.as_json:
            print(json.dumps(exc.to_dict(), indent=2, default=str))
        else:
            print(f"Rejected ({exc.code}): {exc.message}", file=sys.stderr)
            print(f"Hint: {exc.hint}", file=sys.stderr)
            for line in exc.details.get("errors", []):
                print(f"  {line}", file=sys.stderr)
        return 1

    summary = result.summary
    if args.as_json:
        payload = {
            "success": True,
            "fileName": result.file_name,
            "summary": {
                "totalRows": summary.total_rows,
                "validRows": summary.valid_rows,
                "invalidRows": summary.invalid_rows,
                "categories": summary.categories,
                "dateRange": {"start": summary.date_range.start, "end": summary.date_range.end},
                "totalAmount": str(summary.total_amount),
            },
            "errors": [error.display() for error in result.errors],
        }
        print(json.dumps(payload, indent=2))
        return 0

    print(f"{result.file_name}: {summary.valid_rows}/{summary.total_rows} rows valid")
    if summary.date_range.start is not None:
        print(f"Dates: {summary.date_range.start} .. {summary.date_range.end}")
    if summary.categories:
        print(f"Categories: {', '.join(summary.categories)}")
    print(f"Total amount: {summary.total_amount}")
    for error in result.errors:
        print(f"  {error.display()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
