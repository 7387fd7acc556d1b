"""CSV export helpers for completion history."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Mapping

from ..models.habit import HabitCompletion


def export_completions_csv(
    *,
    completions: Iterable[HabitCompletion],
    habit_names: Mapping[int, str],
    output_path: Path,
) -> Path:
    """Write completion history to CSV at `output_path`.

    Columns are deterministic: habit_id, habit_name, day. Completions whose habit
    was deleted keep their row with an empty name. Returns the path written.
    """

    headers = ["habit_id", "habit_name", "day"]
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=headers, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for row in completions:
            writer.writerow(
                {
                    "habit_id": row.habit_id,
                    "habit_name": habit_names.get(row.habit_id, ""),
                    "day": row.day,
                }
            )

    return output_path
