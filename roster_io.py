# -*- coding: utf-8 -*-
"""
Reading and writing roster CSV files, plus the small text helpers that turn
an LMS "sections" field into a tutorial group number.
"""

# --- Imports ---
# csv: For reading/writing CSV files (student records).
# re: For pulling the tutorial group number out of the sections text.
# pathlib.Path: creates the output directory before writing.
import csv
import re
from pathlib import Path

# Matches "Tutorial <n> (<g>)" anywhere in the text; <g> is captured.
TUTORIAL_PATTERN = re.compile(r"Tutorial\s*\d+\s*\((\d+)\)", re.IGNORECASE)


def read_roster(path):
    """
    Read all student records from a CSV into a list of dictionaries.
    Returns (records, fieldnames). "utf-8-sig" strips the byte-order mark
    that LMS exports usually start with.
    """
    with open(path, newline='', encoding='utf-8-sig') as f:
        reader = csv.DictReader(f)
        records = [row for row in reader]
        fieldnames = list(reader.fieldnames or [])
    return records, fieldnames


def write_roster(records, path, fieldnames):
    """Write records to CSV, keeping only `fieldnames` (in that order)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)


def extract_tutorial_group(sections):
    """
    Extract the tutorial group number from a sections field.

    Works regardless of where the tutorial appears in a comma-separated list:
        "Lecture A, Tutorial 1 (2)"  -> 2
        "Tutorial 3 (1), Lecture B"  -> 1
        "Lecture only"               -> None
    """
    if not sections:
        return None
    match = TUTORIAL_PATTERN.search(sections)
    if match is None:
        return None
    return int(match.group(1))


def add_tutorial_groups(records, sections_col="sections", field="tutorial_group"):
    """Return copies of `records` with `field` parsed from `sections_col`."""
    out = []
    for record in records:
        new = dict(record)
        new[field] = extract_tutorial_group(record[sections_col])
        out.append(new)
    return out


def _coerce(value):
    # Override values arrive as text; tutorial numbers should compare as ints.
    value = value.strip()
    try:
        return int(value)
    except ValueError:
        return value


def read_overrides(path, id_col="ID", field="tutorial_group"):
    """
    Load a manual override table: one row per student ID with the value to
    force into `field`. Later rows win over earlier ones for the same ID.
    """
    records, fieldnames = read_roster(path)
    for col in (id_col, field):
        if col not in fieldnames:
            raise KeyError(f"Override file {path} has no '{col}' column.")
    return {(row[id_col] or "").strip(): _coerce(row[field] or "") for row in records}


def apply_overrides(records, overrides, id_col="ID", field="tutorial_group"):
    """
    Apply an override table to the roster.
    Returns (new_records, unmatched_ids) where unmatched_ids are IDs from the
    table that did not match any student.
    """
    seen = set()
    out = []
    for record in records:
        new = dict(record)
        student_id = str(record.get(id_col) or "").strip()
        if student_id in overrides:
            new[field] = overrides[student_id]
            seen.add(student_id)
        out.append(new)
    unmatched = [sid for sid in overrides if sid not in seen]
    return out, unmatched
