# -*- coding: utf-8 -*-
"""
Core grouping logic: pack each tutorial group into teams of 3 or 4,
assign students to those teams, and check the resulting team sizes.
"""

# --- Imports ---
# random: random.Random() gives us one seeded generator per run, so
#   the shuffle is reproducible and never touches the global random state.
# collections.Counter: counts members per (tutorial group, team) pair.
# collections.defaultdict: buckets records by tutorial group.
# collections.namedtuple: SizeViolation, one failing team.
# dataclasses.dataclass, field: the SizeCheckResult container and its
#   violations list.
import random
from collections import Counter, defaultdict, namedtuple
from dataclasses import dataclass, field

# --- Configuration Section ---
# The only sizes this generator knows how to pack.
SUPPORTED_SIZES = (3, 4)

# Counts that cannot be written as a sum of 3s and 4s.
INFEASIBLE_COUNTS = (1, 2, 5)


# --- Errors ---

class GroupGenerationError(Exception):
    """Base class for errors raised while generating groups."""


class InfeasiblePartition(GroupGenerationError):
    """
    Raised when a tutorial group's head count cannot be packed into teams of
    3 and 4 (n = 1, 2 or 5). `stratum` is filled in by assign_groups() so the
    caller knows which tutorial group needs fixing.
    """

    def __init__(self, n, stratum=None):
        self.n = n
        self.stratum = stratum
        super().__init__(n, stratum)

    def __str__(self):
        msg = f"Cannot partition n = {self.n} into groups of size 3 or 4."
        if self.stratum is not None:
            msg = f"Tutorial group {self.stratum!r}: {msg}"
        return msg


class UnsupportedGroupSizes(GroupGenerationError):
    """Raised when the preferred/minimum sizes are not the pair {3, 4}."""

    def __init__(self, grp_size, min_size):
        self.grp_size = grp_size
        self.min_size = min_size
        super().__init__(grp_size, min_size)

    def __str__(self):
        return (f"This generator supports group sizes in {{3, 4}} only "
                f"(got grp_size={self.grp_size!r}, min_size={self.min_size!r}).")


# --- Core Logic ---

def pack_sizes(n):
    """
    Partition n into as many 4s as possible, using 3s only when the
    arithmetic requires it.

    The remainder of n / 4 decides how many 3s are needed:
    - r == 0: only 4s.              e.g. 12 -> [4, 4, 4]
    - r == 1: two 4s plus the 1 become three 3s (4+4+1 = 3+3+3).
                                    e.g. 13 -> [4, 3, 3, 3]
    - r == 2: one 4 plus the 2 becomes two 3s (4+2 = 3+3).
                                    e.g. 10 -> [4, 3, 3]
    - r == 3: just add one 3.       e.g. 11 -> [4, 4, 3]

    The 4s always come first. n == 0 gives no groups at all.
    Raises InfeasiblePartition for n in {1, 2, 5}.
    """
    if n < 0:
        raise ValueError(f"Group count must be non-negative, got {n}.")
    if n in INFEASIBLE_COUNTS:
        raise InfeasiblePartition(n)

    r = n % 4
    if r == 0:
        return [4] * (n // 4)
    elif r == 1:
        # replace two 4s (+1) with three 3s
        return [4] * ((n - 9) // 4) + [3, 3, 3]
    elif r == 2:
        # replace one 4 (+2) with two 3s
        return [4] * ((n - 6) // 4) + [3, 3]
    else:  # r == 3
        return [4] * ((n - 3) // 4) + [3]


def normalise_sizes(grp_size, min_size):
    """
    Validate the preferred/minimum pair and return it as (4, 3).
    The larger value is always treated as the preference.
    """
    if grp_size not in SUPPORTED_SIZES or min_size not in SUPPORTED_SIZES:
        raise UnsupportedGroupSizes(grp_size, min_size)
    if grp_size < min_size:
        grp_size, min_size = min_size, grp_size
    if (grp_size, min_size) != (4, 3):
        raise UnsupportedGroupSizes(grp_size, min_size)
    return grp_size, min_size


def stratum_sort_key(stratum):
    # Numeric ids by value, then text ids, then students with no tutorial.
    if stratum is None:
        return (2, 0, "")
    if isinstance(stratum, (int, float)):
        return (0, stratum, "")
    return (1, 0, str(stratum))


def split_by_stratum(records, key):
    """
    Bucket records by their `key` value. Returns a list of
    (stratum, members) pairs in processing order (sorted, None last).
    Input order is preserved inside each bucket.
    """
    buckets = defaultdict(list)
    for record in records:
        buckets[record.get(key)].append(record)
    return [(s, buckets[s]) for s in sorted(buckets, key=stratum_sort_key)]


def _assign_stratum(members, rng, group_col):
    """
    Shuffle one tutorial group with the shared generator and hand out
    team ids following pack_sizes().

    The shuffle consumes the next slice of randomness from `rng`, so the
    order in which strata are visited matters for reproducibility.
    """
    shuffled = [dict(m) for m in members]
    rng.shuffle(shuffled)

    sizes = pack_sizes(len(shuffled))

    idx = 0
    for group_id, size in enumerate(sizes, start=1):
        for member in shuffled[idx:idx + size]:
            member[group_col] = group_id
        idx += size
    return shuffled


def assign_groups(records, key="tutorial_group", grp_size=4, seed=42,
                  name_prefix=None, min_size=3, group_col="group_id",
                  name_col="group_name"):
    """
    Generate teams of 3 or 4 within every tutorial group, with as many
    4-person teams as possible.

    Students are shuffled within each value of `key` using a single
    random.Random(seed) shared across the whole run; tutorial groups are
    visited in sorted order so the same seed and the same input always give
    the same teams.

    Returns a new list of records, each with an integer `group_col`
    (1..K within its tutorial group) and, if `name_prefix` is given, a
    `name_col` of the form "<name_prefix> Group <id>". The input records
    are left untouched.

    Raises UnsupportedGroupSizes for a size pair other than {3, 4}, and
    InfeasiblePartition (tagged with the tutorial group) as soon as one
    tutorial group cannot be packed. No partial result is returned.
    """
    normalise_sizes(grp_size, min_size)

    rng = random.Random(seed)
    assigned = []
    for stratum, members in split_by_stratum(records, key):
        try:
            assigned.extend(_assign_stratum(members, rng, group_col))
        except InfeasiblePartition as e:
            e.stratum = stratum
            e.args = (e.n, stratum)
            raise

    if name_prefix is not None:
        for record in assigned:
            record[name_col] = f"{name_prefix} Group {record[group_col]}"
    return assigned


# --- Size Check ---

SizeViolation = namedtuple("SizeViolation", ["stratum", "group", "count"])


@dataclass
class SizeCheckResult:
    """
    Outcome of check_group_sizes(). Truthy when every team passed.
    What to do on failure (abort, or just report) is up to the caller.
    """
    min_size: int
    allowed: tuple = None
    violations: list = field(default_factory=list)

    @property
    def ok(self):
        return not self.violations

    def __bool__(self):
        return self.ok

    def describe(self):
        """One message naming every team that failed the check."""
        if self.ok:
            return "All group sizes are valid."
        rule = f">= {self.min_size}"
        if self.allowed is not None:
            rule += f" and in {{{', '.join(str(a) for a in sorted(self.allowed))}}}"
        lines = [f"{len(self.violations)} group(s) failed the size check ({rule}):"]
        for v in self.violations:
            lines.append(f"  Tutorial {v.stratum}, Group {v.group}: {v.count} member(s)")
        return "\n".join(lines)


def check_group_sizes(records, key="tutorial_group", group_col="group_id",
                      min_size=3, allowed=SUPPORTED_SIZES):
    """
    Verify team sizes after assignment.

    Every (key, group_col) pair must have at least `min_size` members and,
    unless `allowed` is None, a member count contained in `allowed`.
    All failing teams are collected; the check never stops at the first one.
    """
    counts = Counter((record.get(key), record.get(group_col)) for record in records)

    if allowed is not None:
        allowed = tuple(allowed)
    result = SizeCheckResult(min_size=min_size, allowed=allowed)
    for (stratum, group), n in counts.items():
        too_small = n < min_size
        not_allowed = allowed is not None and n not in allowed
        if too_small or not_allowed:
            result.violations.append(SizeViolation(stratum, group, n))
    return result
