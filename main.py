#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Driver script: turns an LMS roster export into a group-assignment CSV.

Reads the roster, pulls the tutorial group out of the sections field,
applies manual overrides, forms groups of 4 (3s only where needed) inside
every tutorial group, checks the sizes and only then writes the file for
re-upload.
"""

import argparse
import sys
from pathlib import Path

from group_generator import (
    GroupGenerationError, assign_groups, check_group_sizes, SUPPORTED_SIZES,
)
from reporting import create_visualizations, summarise
from roster_io import (
    add_tutorial_groups, apply_overrides, read_overrides, read_roster, write_roster,
)

# --- Configuration Section ---
INPUT_FILE = "data/roster.csv"
OUTPUT_FILE = "output/assignment_groups.csv"

# Fixed seed so re-running on the same roster gives the same groups.
SEED = 76

# Preference: make as many groups of GROUP_SIZE as possible, never below MIN_SIZE.
GROUP_SIZE = 4
MIN_SIZE = 3

SECTIONS_COLUMN = "sections"
ID_COLUMN = "ID"
TUTORIAL_FIELD = "tutorial_group"
GROUP_ID_FIELD = "group_id"
GROUP_NAME_FIELD = "group_name"

# Label prefix for students whose sections field names no tutorial.
NO_TUTORIAL_LABEL = "No Tutorial"


def group_label(tutorial, group_id):
    """Upload label for a group, e.g. "Tutorial 2, Group 3"."""
    if tutorial is None:
        return f"{NO_TUTORIAL_LABEL}, Group {group_id}"
    return f"Tutorial {tutorial}, Group {group_id}"


def build_parser():
    ap = argparse.ArgumentParser(description="Generate 3-4 person groups within each tutorial.")
    ap.add_argument("--input", "-i", default=INPUT_FILE, help="Roster CSV exported from the LMS.")
    ap.add_argument("--output", "-o", default=OUTPUT_FILE, help="Group assignment CSV to write.")
    ap.add_argument("--overrides", default=None,
                    help=f"CSV of manual fixes with '{ID_COLUMN}' and '{TUTORIAL_FIELD}' columns.")
    ap.add_argument("--seed", type=int, default=SEED)
    ap.add_argument("--grp-size", type=int, default=GROUP_SIZE, choices=SUPPORTED_SIZES)
    ap.add_argument("--min-size", type=int, default=MIN_SIZE, choices=SUPPORTED_SIZES)
    ap.add_argument("--sections-col", default=SECTIONS_COLUMN)
    ap.add_argument("--id-col", default=ID_COLUMN)
    ap.add_argument("--plots", default=None, metavar="DIR", help="Also save charts into DIR.")
    ap.add_argument("--no-summary", action="store_true")
    return ap


def main(argv=None):
    args = build_parser().parse_args(argv)

    # --- Load data ---
    try:
        records, fieldnames = read_roster(args.input)
        records = add_tutorial_groups(records, args.sections_col, TUTORIAL_FIELD)
    except (FileNotFoundError, KeyError, ValueError) as e:
        print(f"Error reading input file: {e}")
        return 1
    print(f"Found {len(records)} students in {args.input}.")

    missing = [r for r in records if r[TUTORIAL_FIELD] is None]
    if missing:
        print(f"Warning: {len(missing)} student(s) have no tutorial in '{args.sections_col}'; "
              f"they will be grouped together and labelled '{NO_TUTORIAL_LABEL}, Group <n>'.")

    # --- Manual fix-ups not yet in the enrolment system ---
    if args.overrides:
        try:
            overrides = read_overrides(args.overrides, args.id_col, TUTORIAL_FIELD)
        except (FileNotFoundError, KeyError, ValueError) as e:
            print(f"Error reading overrides file: {e}")
            return 1
        records, unmatched = apply_overrides(records, overrides, args.id_col, TUTORIAL_FIELD)
        print(f"Applied {len(overrides) - len(unmatched)} override(s) from {args.overrides}.")
        for sid in unmatched:
            print(f"Warning: override for unknown student ID {sid!r} ignored.")

    # --- Generate groups ---
    try:
        groups = assign_groups(
            records,
            key=TUTORIAL_FIELD,
            grp_size=args.grp_size,
            seed=args.seed,
            name_prefix=None,  # we build our own label below
            min_size=args.min_size,
            group_col=GROUP_ID_FIELD,
        )
    except GroupGenerationError as e:
        print(f"Group generation failed: {e}")
        print("Not saving: fix the roster (or add overrides) and re-run.")
        return 1

    for record in groups:
        record[GROUP_NAME_FIELD] = group_label(record[TUTORIAL_FIELD], record[GROUP_ID_FIELD])

    # --- Verify sizes ---
    check = check_group_sizes(
        groups,
        key=TUTORIAL_FIELD,
        group_col=GROUP_ID_FIELD,
        min_size=min(args.grp_size, args.min_size),
        allowed=SUPPORTED_SIZES,
    )

    # --- Write output ---
    if check:
        print("Groups valid. Saving CSV")
        # Only the original roster columns, plus the label the LMS imports.
        out_fields = fieldnames + [f for f in (GROUP_NAME_FIELD,) if f not in fieldnames]
        write_roster(groups, args.output, out_fields)
        print(f"Successfully wrote assignment results for {len(groups)} students to {args.output}")
    else:
        print("Group size check failed:\n" + check.describe())
        print("Not saving: fix group sizes and re-run.")
        return 1

    if not args.no_summary:
        summarise(groups, TUTORIAL_FIELD, GROUP_ID_FIELD)
    if args.plots:
        create_visualizations(groups, Path(args.plots), TUTORIAL_FIELD, GROUP_ID_FIELD)
    return 0


if __name__ == "__main__":
    sys.exit(main())
