"""
Multiple-choice quiz.

Each question shows a word and up to four candidate meanings drawn from the
session's own items. A correct answer on the first try rates the item easy;
getting there after a wrong answer rates it hard.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from loguru import logger
from rich.panel import Panel
from rich.prompt import IntPrompt

from src.core.errors import InvalidArgument
from src.lexicon.corpus import VocabularyItem
from src.review.scheduler import Rating

from ..base import LearningMode
from ..registry import builtin_mode

OPTION_COUNT = 4


@dataclass
class Question:
    item: VocabularyItem
    options: list[VocabularyItem]


@builtin_mode(
    "quiz",
    label="Quiz",
    flag="QUIZ",
    description="Pick the right meaning out of four",
)
class QuizMode(LearningMode):
    required_fields = ("words",)

    def __init__(self, context):
        super().__init__(context)
        self.questions: list[Question] = []
        self._rng = random.Random(context.options.get("seed"))

    async def init(self) -> None:
        self.validate_data()
        pool = self.items
        if not pool:
            raise InvalidArgument(f"No words to quiz in mode '{self.mode_id}'")

        order = list(pool)
        if self.options.get("shuffle", True):
            self._rng.shuffle(order)
        self.questions = [Question(item=item, options=self._options_for(item, pool)) for item in order]
        self.state.update(index=0, attempts=0, score=0, answers={})
        logger.debug(f"{self.mode_id}: {len(self.questions)} questions ready")

    def _options_for(self, item: VocabularyItem, pool: list[VocabularyItem]) -> list[VocabularyItem]:
        # Distractors need a different meaning from the answer and from each other
        seen = {item.translation}
        distractors = []
        for candidate in pool:
            if candidate.id != item.id and candidate.translation not in seen:
                seen.add(candidate.translation)
                distractors.append(candidate)
        chosen = self._rng.sample(distractors, min(OPTION_COUNT - 1, len(distractors)))
        options = chosen + [item]
        self._rng.shuffle(options)
        return options

    async def cleanup(self) -> None:
        logger.debug(f"{self.mode_id}: score {self.state.get('score', 0)}/{len(self.questions)}")

    @property
    def current(self) -> Question | None:
        index = self.state.get("index", 0)
        if self.finished or index >= len(self.questions):
            return None
        return self.questions[index]

    def render(self) -> None:
        question = self.current
        if question is None:
            self.surface.print(
                Panel(
                    f"Score: [bold]{self.state.get('score', 0)}[/bold] / {len(self.questions)}",
                    title="Quiz complete",
                    border_style="green",
                )
            )
            return

        lines = [f"[bold]{question.item.text}[/bold]", ""]
        for number, option in enumerate(question.options, start=1):
            lines.append(f"  [cyan]{number}.[/cyan] {option.translation}")
        index = self.state.get("index", 0)
        self.surface.print(
            Panel("\n".join(lines), title=f"Question {index + 1}/{len(self.questions)}", border_style="blue")
        )

    def answer(self, item_id: str) -> bool:
        """
        Answer the current question with the id of the chosen option.

        A wrong answer keeps the question open for another try.
        """
        question = self.current
        if question is None:
            raise InvalidArgument(f"No question left to answer in mode '{self.mode_id}'")

        correct = item_id == question.item.id
        self.record_answer(correct)
        attempts = self.state.get("attempts", 0) + 1

        if not correct:
            self.update_state(attempts=attempts)
            self.surface.print("[red]Not quite, try again.[/red]")
            return False

        rating = Rating.EASY if attempts == 1 else Rating.HARD
        self.rate_item(question.item, rating)
        answers = dict(self.state.get("answers", {}))
        answers[question.item.id] = rating.value
        self.update_state(
            index=self.state["index"] + 1,
            attempts=0,
            score=self.state.get("score", 0) + (1 if attempts == 1 else 0),
            answers=answers,
        )
        self.surface.print(f"[green]Correct![/green] {question.item.text} = {question.item.translation}")
        self.render()
        if self.current is None:
            self.end_session()
        return True

    def choose(self, number: int) -> bool:
        """Answer by option number (1-based)."""
        question = self.current
        if question is None:
            raise InvalidArgument(f"No question left to answer in mode '{self.mode_id}'")
        if not 1 <= number <= len(question.options):
            raise InvalidArgument(f"Option must be between 1 and {len(question.options)}")
        return self.answer(question.options[number - 1].id)

    async def interact(self) -> None:
        while self.current is not None:
            count = len(self.current.options)
            number = IntPrompt.ask(
                "Your answer",
                choices=[str(n) for n in range(1, count + 1)],
                console=self.surface,
            )
            self.choose(number)
