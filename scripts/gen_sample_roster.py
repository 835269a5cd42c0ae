#!/usr/bin/env python3
"""Synthetic staff roster generator for manual and load testing of bulk-import.

Produces a CSV or xlsx file shaped like a typical HR export:
- optional title row above the header (exercises header_strategy: detect)
- headers spelled the way exports spell them ("Full Name", "E-mail", "Mobile")
- a share of malformed emails and of repeated emails (intra-file duplicates)
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

FIRST_NAMES = ["Ana", "Ben", "Chloe", "Dev", "Ella", "Femi", "Grace", "Hugo", "Isla", "Jon"]
LAST_NAMES = ["Smith", "Jones", "Patel", "Nowak", "Okafor", "Brown", "Khan", "Silva", "Murphy"]
ROLES = ["Staff", "Manager", "Admin"]
SITES = ["Soho", "Shoreditch", "Brixton", "Camden"]
SECTIONS = ["FOH", "BOH", "Both"]
CONTRACTS = ["Permanent", "Zero Hours", "Casual", "Fixed Term"]


def generate_roster(
    rows: int,
    *,
    bad_email_ratio: float = 0.05,
    duplicate_ratio: float = 0.02,
    seed: int = 42,
) -> pd.DataFrame:
    """Build the roster frame; columns carry export-style headers."""
    rng = np.random.default_rng(seed)
    first = rng.choice(FIRST_NAMES, rows)
    last = rng.choice(LAST_NAMES, rows)
    emails = [f"{f.lower()}.{l.lower()}{i}@example.com" for i, (f, l) in enumerate(zip(first, last))]

    bad = rng.random(rows) < bad_email_ratio
    for i in np.flatnonzero(bad):
        emails[i] = emails[i].replace("@", "@@")
    dup = rng.random(rows) < duplicate_ratio
    for i in np.flatnonzero(dup):
        if i > 0:
            emails[i] = emails[int(rng.integers(0, i))]

    phones = [f"07700 9{n:05d}" for n in rng.integers(0, 100000, rows)]
    start = pd.Timestamp("2020-01-01") + pd.to_timedelta(rng.integers(0, 1800, rows), unit="D")
    return pd.DataFrame(
        {
            "Full Name": [f"{f} {l}" for f, l in zip(first, last)],
            "E-mail": emails,
            "Mobile": phones,
            "Role": rng.choice(ROLES, rows),
            "Site / Location": rng.choice(SITES, rows),
            "BOH / FOH": rng.choice(SECTIONS, rows),
            "Start Date": start.strftime("%d/%m/%Y"),
            "Contract Type": rng.choice(CONTRACTS, rows),
            "Contracted Hours": rng.choice([16, 24, 32, 37.5, 40], rows),
        }
    )


def write_roster(df: pd.DataFrame, output_path: Path, *, title: str | None = None) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    grid = [df.columns.tolist()] + df.astype(str).values.tolist()
    if title:
        grid.insert(0, [title] + [""] * (len(df.columns) - 1))
    frame = pd.DataFrame(grid)
    if output_path.suffix.lower() == ".csv":
        frame.to_csv(output_path, header=False, index=False)
    else:
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name="Staff", header=False, index=False)
    print(f"Created roster: {output_path} rows={len(df)}" + (" (with title row)" if title else ""))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic staff roster for bulk-import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/roster.csv
  %(prog)s data/roster.xlsx --rows 500 --title "Staff export 2024"
  %(prog)s data/dirty.csv --bad-emails 0.2 --duplicates 0.1
        """,
    )
    parser.add_argument("output", type=Path, help="Output path (.csv or .xlsx)")
    parser.add_argument("--rows", type=int, default=100, help="Data rows (default: 100)")
    parser.add_argument("--title", help="Title row written above the header")
    parser.add_argument("--bad-emails", type=float, default=0.05, help="Share of malformed emails")
    parser.add_argument("--duplicates", type=float, default=0.02, help="Share of repeated emails")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in {".csv", ".xlsx"}:
        print("Error: output must end in .csv or .xlsx", file=sys.stderr)
        return 1

    df = generate_roster(
        args.rows,
        bad_email_ratio=args.bad_emails,
        duplicate_ratio=args.duplicates,
        seed=args.seed,
    )
    write_roster(df, args.output, title=args.title)
    return 0


if __name__ == "__main__":
    sys.exit(main())
