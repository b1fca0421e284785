# -*- coding: utf-8 -*-
"""Console summary and charts for a finished group assignment."""

from collections import Counter, defaultdict
from pathlib import Path

# matplotlib.pyplot: Used to create and save plot visualizations.
import matplotlib.pyplot as plt
import seaborn as sns

from group_generator import stratum_sort_key


def _team_sizes(records, key, group_col):
    """Map each tutorial group to a {team id: member count} dict."""
    sizes = defaultdict(Counter)
    for record in records:
        sizes[record.get(key)][record.get(group_col)] += 1
    return sizes


def summarise(records, key="tutorial_group", group_col="group_id"):
    """
    Print a summary report of the assignment and return, per tutorial group,
    a Counter of team size -> number of teams.
    """
    if not records:
        print("Summary: No groups were created.")
        return {}

    team_sizes = _team_sizes(records, key, group_col)
    total_teams = sum(len(teams) for teams in team_sizes.values())

    print("\n--- Group Formation Summary ---")
    print(f"Total students assigned: {len(records)}")
    print(f"Total groups created: {total_teams}")

    distribution = {}
    for tg_name in sorted(team_sizes, key=stratum_sort_key):
        teams = team_sizes[tg_name]
        size_counts = Counter(teams.values())
        distribution[tg_name] = size_counts

        print(f"\n--- Tutorial Group: {tg_name} ---")
        print(f"  Students: {sum(teams.values())}, groups: {len(teams)}")
        for size, count in sorted(size_counts.items(), reverse=True):
            print(f"    {size}-person groups: {count}")
    return distribution


def create_visualizations(records, out_dir, key="tutorial_group", group_col="group_id"):
    """
    Generate and save charts summarising the assignment into `out_dir`.
    Returns the list of files written.
    """
    if not records:
        print("\nCannot create visualizations because there are no assigned students.")
        return []

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []

    # Use a clean plotting style.
    plt.style.use('seaborn-v0_8-whitegrid')

    team_sizes = _team_sizes(records, key, group_col)
    tg_order = sorted(team_sizes, key=stratum_sort_key)
    tg_labels = [str(tg) for tg in tg_order]

    # --- Plot 1: Group sizes per tutorial group (count plot) ---
    tgs, sizes = [], []
    for tg in tg_order:
        for n in team_sizes[tg].values():
            tgs.append(str(tg))
            sizes.append(f"{n}-person")

    fig, ax = plt.subplots(figsize=(max(8, len(tg_order) * 0.6), 6))
    sns.countplot(x=tgs, hue=sizes, order=tg_labels, ax=ax)
    ax.set_title('Group Sizes by Tutorial Group')
    ax.set_xlabel('Tutorial Group')
    ax.set_ylabel('Number of Groups')
    ax.legend(title='Group size')
    fig.tight_layout()
    path = out_dir / 'group_sizes_by_tutorial.png'
    fig.savefig(path)
    plt.close(fig)
    written.append(path)
    print(f"Saved chart '{path}'")

    # --- Plot 2: Students per tutorial group (horizontal bar) ---
    counts = [sum(team_sizes[tg].values()) for tg in tg_order]
    fig, ax = plt.subplots(figsize=(10, max(4, len(tg_order) * 0.4)))
    ax.barh(tg_labels, counts, color='salmon')
    ax.set_title('Number of Students per Tutorial Group')
    ax.set_xlabel('Number of Students')
    ax.set_ylabel('Tutorial Group')
    fig.tight_layout()
    path = out_dir / 'students_per_tutorial.png'
    fig.savefig(path)
    plt.close(fig)
    written.append(path)
    print(f"Saved chart '{path}'")

    return written
