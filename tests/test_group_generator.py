import copy

import pytest

from group_generator import (
    InfeasiblePartition, SizeViolation, UnsupportedGroupSizes,
    assign_groups, check_group_sizes, pack_sizes,
)


def make_roster(counts):
    """Build rows like {"student": "A1", "tutorial_group": "A"} for {stratum: n}."""
    rows = []
    for stratum, n in counts.items():
        for i in range(1, n + 1):
            rows.append({"student": f"{stratum}{i}", "tutorial_group": stratum})
    return rows


def sizes_by_group(records, key="tutorial_group", group_col="group_id"):
    out = {}
    for r in records:
        out.setdefault(r[key], {}).setdefault(r[group_col], 0)
        out[r[key]][r[group_col]] += 1
    return out


def max_fours(n):
    return max(k for k in range(n // 4 + 1) if (n - 4 * k) % 3 == 0)


# --- pack_sizes ---

@pytest.mark.parametrize("n, expected", [
    (0, []),
    (3, [3]),
    (4, [4]),
    (6, [3, 3]),
    (7, [4, 3]),
    (8, [4, 4]),
    (9, [3, 3, 3]),
    (10, [4, 3, 3]),
    (11, [4, 4, 3]),
    (13, [4, 3, 3, 3]),
    (50, [4] * 11 + [3, 3]),
])
def test_pack_sizes_examples(n, expected):
    assert pack_sizes(n) == expected


def test_pack_sizes_sums_and_maximises_fours():
    for n in range(0, 200):
        if n in (1, 2, 5):
            continue
        sizes = pack_sizes(n)
        assert sum(sizes) == n
        assert set(sizes) <= {3, 4}
        assert sizes.count(4) == max_fours(n)


@pytest.mark.parametrize("n, expected", [
    (20, [4, 4, 4, 4, 4]),
    (21, [4, 4, 4, 3, 3, 3]),
    (22, [4, 4, 4, 4, 3, 3]),
    (23, [4, 4, 4, 4, 4, 3]),
])
def test_pack_sizes_puts_fours_before_threes(n, expected):
    assert pack_sizes(n) == expected


@pytest.mark.parametrize("n", [1, 2, 5])
def test_pack_sizes_infeasible(n):
    with pytest.raises(InfeasiblePartition) as exc:
        pack_sizes(n)
    assert exc.value.n == n
    assert exc.value.stratum is None


def test_pack_sizes_rejects_negative():
    with pytest.raises(ValueError):
        pack_sizes(-3)


# --- assign_groups ---

def test_assign_two_tutorials():
    roster = make_roster({"A": 11, "B": 9})
    out = assign_groups(roster, seed=123)

    sizes = sizes_by_group(out)
    assert sorted(sizes["A"].values()) == [3, 4, 4]
    assert sorted(sizes["B"].values()) == [3, 3, 3]
    assert set(sizes["A"]) == {1, 2, 3}
    assert set(sizes["B"]) == {1, 2, 3}
    assert len(out) == 20
    assert sorted(r["student"] for r in out) == sorted(r["student"] for r in roster)
    assert check_group_sizes(out).ok


def test_assign_follows_pack_order_after_shuffle():
    out = assign_groups(make_roster({"A": 11}), seed=7)
    assert [r["group_id"] for r in out] == [1] * 4 + [2] * 4 + [3] * 3


def test_assign_is_reproducible():
    roster = make_roster({"A": 11, "B": 9, "C": 16})
    first = assign_groups(roster, seed=76)
    second = assign_groups(roster, seed=76)
    assert first == second


def test_assign_does_not_mutate_input():
    roster = make_roster({"A": 7})
    before = copy.deepcopy(roster)
    out = assign_groups(roster, seed=1)
    assert roster == before
    assert all("group_id" not in r for r in roster)
    assert all("group_id" in r for r in out)


def test_assign_visits_strata_in_sorted_order_with_missing_last():
    roster = make_roster({3: 4, None: 3, 1: 4})
    out = assign_groups(roster, seed=5)
    order = []
    for r in out:
        if not order or order[-1] != r["tutorial_group"]:
            order.append(r["tutorial_group"])
    assert order == [1, 3, None]


def test_assign_mixed_number_and_text_tutorials():
    roster = make_roster({"A": 4, 2: 3, None: 3, 1: 4, "": 3})
    out = assign_groups(roster, seed=1)
    order = []
    for r in out:
        if not order or order[-1] != r["tutorial_group"]:
            order.append(r["tutorial_group"])
    assert order == [1, 2, "", "A", None]
    assert check_group_sizes(out).ok


def test_assign_infeasible_tutorial_is_tagged():
    roster = make_roster({"A": 4, "C": 5})
    with pytest.raises(InfeasiblePartition) as exc:
        assign_groups(roster, seed=42)
    assert exc.value.stratum == "C"
    assert exc.value.n == 5
    assert exc.value.args == (5, "C")
    assert "'C'" in str(exc.value)


def test_assign_name_prefix():
    out = assign_groups(make_roster({"A": 8}), seed=3, name_prefix="Proj")
    assert {r["group_name"] for r in out} == {"Proj Group 1", "Proj Group 2"}
    assert all(r["group_name"] == f"Proj Group {r['group_id']}" for r in out)


def test_assign_without_prefix_adds_no_label():
    out = assign_groups(make_roster({"A": 4}), seed=3)
    assert all("group_name" not in r for r in out)


def test_assign_swaps_preferred_and_minimum():
    out = assign_groups(make_roster({"A": 10}), grp_size=3, min_size=4, seed=9)
    assert sorted(sizes_by_group(out)["A"].values()) == [3, 3, 4]


@pytest.mark.parametrize("grp_size, min_size", [(4, 4), (3, 3), (5, 3), (4, 2)])
def test_assign_unsupported_sizes(grp_size, min_size):
    with pytest.raises(UnsupportedGroupSizes):
        assign_groups(make_roster({"A": 8}), grp_size=grp_size, min_size=min_size)


def test_assign_empty_roster():
    assert assign_groups([], seed=1) == []


# --- check_group_sizes ---

def test_check_min_four_reports_only_three_person_groups():
    out = assign_groups(make_roster({"A": 11, "B": 9}), seed=123)
    sizes = sizes_by_group(out)
    expected = {
        (s, g, n) for s, groups in sizes.items() for g, n in groups.items() if n == 3
    }

    result = check_group_sizes(out, min_size=4, allowed=(3, 4))
    assert not result
    assert set(result.violations) == expected
    assert len(result.violations) == 4


def test_check_reports_every_failure_once():
    rows = (
        [{"tutorial_group": 1, "group_id": 1}] * 2
        + [{"tutorial_group": 1, "group_id": 2}] * 5
        + [{"tutorial_group": 2, "group_id": 1}] * 4
    )
    result = check_group_sizes(rows, min_size=3, allowed=(3, 4))
    assert result.violations == [SizeViolation(1, 1, 2), SizeViolation(1, 2, 5)]

    message = result.describe()
    assert "Tutorial 1, Group 1: 2 member(s)" in message
    assert "Tutorial 1, Group 2: 5 member(s)" in message
    assert "Tutorial 2" not in message


def test_check_allowed_none_only_checks_minimum():
    rows = [{"tutorial_group": 1, "group_id": 1}] * 6
    assert check_group_sizes(rows, min_size=3, allowed=None)
    assert not check_group_sizes(rows, min_size=3, allowed=(3, 4))


def test_check_custom_columns():
    rows = [{"section": "X", "team": 1}] * 3
    result = check_group_sizes(rows, key="section", group_col="team")
    assert result.ok
    assert result.describe() == "All group sizes are valid."
