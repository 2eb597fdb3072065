"""Read-only table of a session's words."""

from __future__ import annotations

from rich.table import Table

from ..base import LearningMode
from ..registry import builtin_mode


@builtin_mode(
    "examine",
    label="Examine",
    flag="EXAMINE",
    description="Browse the words with their meanings",
)
class ExamineMode(LearningMode):
    required_fields = ("words",)

    def init(self) -> None:
        self.validate_data()
        self.state.update(count=len(self.items))

    def render(self) -> None:
        info = self.data.get("session_info") or self.data.get("category_info") or {}
        title = info.get("session_id") or info.get("name") or "Vocabulary"

        table = Table(title=title, show_lines=False)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Word", style="bold")
        table.add_column("Pronunciation", style="dim")
        table.add_column("Meaning", style="cyan")
        table.add_column("Tier", justify="center")

        for number, item in enumerate(self.items, start=1):
            table.add_row(
                str(number),
                item.text,
                item.pronunciation or "",
                item.translation,
                item.tier,
            )
        self.surface.print(table)

    def cleanup(self) -> None:
        pass
