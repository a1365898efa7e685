#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path

from openpyxl import Workbook

HEADERS = ["Machine", "Shift", "Operator", "Quantity"]


def sample_rows(count: int) -> list[list[object]]:
    shifts = ["Day", "Night"]
    return [[f"HD-{10 + index:02d}", shifts[index % 2], f"Operator {index + 1}", 1000 + index * 25] for index in range(count)]


def write_sample(output: Path, rows: int, extra_sheet: bool = False) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    data = sample_rows(rows)
    if output.suffix.lower() == ".csv":
        with output.open("w", encoding="utf-8", newline="") as fp:
            writer = csv.writer(fp)
            writer.writerow(HEADERS)
            writer.writerows(data)
        return output

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Production"
    sheet.append(HEADERS)
    for row in data:
        sheet.append(row)
    if extra_sheet:
        # only the first sheet is ever read
        ignored = workbook.create_sheet("Ignored")
        ignored.append(["not", "read"])
    workbook.save(output)
    return output


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a sample spreadsheet for the upload workflow")
    parser.add_argument("--output", required=True, help="Output path (.xlsx or .csv)")
    parser.add_argument("--rows", type=int, default=3, help="Number of data rows")
    parser.add_argument("--extra-sheet", action="store_true", help="Add a second sheet to an .xlsx workbook")
    args = parser.parse_args(argv)

    output = write_sample(Path(args.output), args.rows, args.extra_sheet)
    print(f"Sample spreadsheet written: {output}")


if __name__ == "__main__":
    main()
