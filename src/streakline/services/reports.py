"""Chart rendering for analytics views."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from .analytics import DayCount  # noqa: E402
from .habits import MomentumPoint  # noqa: E402

ACCENT = "#818CF8"
POSITIVE = "#34D399"
NEGATIVE = "#F87171"


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def _day_label(day) -> str:
    return f"{day.day} {day.strftime('%b')}"


def build_activity_chart(*, counts: Sequence[DayCount], title: str = "Activity Trend") -> Figure:
    """Bar chart of how many habits were completed on each day."""

    fig, ax = plt.subplots(figsize=(10, 4))
    if counts:
        labels = [_day_label(c.day) for c in counts]
        values = [c.completed for c in counts]
        ax.bar(range(len(values)), values, color=ACCENT, width=0.7)
        step = max(1, len(labels) // 10)
        ax.set_xticks(range(0, len(labels), step))
        ax.set_xticklabels(labels[::step], fontsize=9)
        ax.set_ylabel("Habits completed")
        ax.yaxis.get_major_locator().set_params(integer=True)
        ax.spines[["top", "right"]].set_visible(False)
        ax.grid(axis="y", linestyle="--", alpha=0.3)
    else:
        ax.text(0.5, 0.5, "No activity data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
    ax.set_title(title, fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig


def build_momentum_chart(*, series: Sequence[MomentumPoint], habit_name: str) -> Figure:
    """Line chart of a habit's running momentum score."""

    fig, ax = plt.subplots(figsize=(10, 4))
    if series:
        xs = list(range(len(series)))
        scores = [p.score for p in series]
        ax.plot(xs, scores, color=ACCENT, linewidth=2, marker="o", markersize=3)
        ax.axhline(0, color="#999", linewidth=0.8)
        ax.fill_between(xs, scores, 0, where=[s >= 0 for s in scores], color=POSITIVE, alpha=0.2)
        ax.fill_between(xs, scores, 0, where=[s < 0 for s in scores], color=NEGATIVE, alpha=0.2)
        step = max(1, len(series) // 10)
        ax.set_xticks(xs[::step])
        ax.set_xticklabels([_day_label(p.day) for p in series][::step], fontsize=9)
        ax.set_ylabel("Score")
        ax.spines[["top", "right"]].set_visible(False)
    else:
        ax.text(0.5, 0.5, "No momentum data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
    ax.set_title(f"Momentum: {habit_name}", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig


def save_figure(
    fig: Figure,
    *,
    output_path: Path,
    renderer: ReportRenderer | None = None,
) -> Path:
    """Write a figure to PNG (or hand it to ``renderer``) and close it."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if renderer is not None:
            renderer.render(fig, output_path=output_path)
        else:
            fig.savefig(output_path, bbox_inches="tight", dpi=120)
    finally:
        plt.close(fig)
    return output_path


def export_activity_png(
    *,
    counts: Sequence[DayCount],
    output_path: Path,
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render the activity chart to PNG and return the path."""

    return save_figure(build_activity_chart(counts=counts), output_path=output_path, renderer=renderer)


def export_momentum_png(
    *,
    series: Sequence[MomentumPoint],
    habit_name: str,
    output_path: Path,
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render the momentum chart to PNG and return the path."""

    fig = build_momentum_chart(series=series, habit_name=habit_name)
    return save_figure(fig, output_path=output_path, renderer=renderer)
