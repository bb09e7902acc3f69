#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path


HEADER = [
    "Material",
    "Quantity in Kgs",
    "Rate",
    "COST",
    "Certification if any",
]

SAMPLE_ROWS = [
    ("Sugar", 500, 42),
    ("Salt", 200, 15),
    ("Wheat Flour", 1000, 28),
    ("Sunflower Oil", 150, 135),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a materials CSV for /api/import-materials-csv")
    parser.add_argument("--output", required=True, help="Output file path (.csv)")
    parser.add_argument("--certification", default="FSSAI", help="Certification written on the first row")
    parser.add_argument("--blank-cost", action="store_true", help="Leave COST empty so totals are derived")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow(HEADER)
        for index, (name, quantity, rate) in enumerate(SAMPLE_ROWS):
            writer.writerow([
                name,
                quantity,
                rate,
                "" if args.blank_cost else quantity * rate,
                args.certification if index == 0 else "",
            ])

    print(f"Materials CSV written: {output}")


if __name__ == "__main__":
    main()
