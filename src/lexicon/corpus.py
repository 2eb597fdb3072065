"""
Vocabulary Corpus: item and category loader.

Loads the vocabulary from:
- a JSON file (load)
- the static vocabulary HTTP endpoint (fetch, via httpx)
- an in-memory mapping (from_mapping)

The corpus shape is {categoryId: {"name": ..., "items": [...]}}. Items are
read-only to the engine.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from src.core.errors import InvalidArgument, NotFound

from .tiers import DEFAULT_SCALE, TierScale

# =============================================================================
# Vocabulary Item
# =============================================================================


@dataclass(frozen=True)
class VocabularyItem:
    """
    A single vocabulary entry.

    text is the source-language form shown to the learner; translation is
    the meaning. tier is a label from the corpus's TierScale.
    """

    id: str
    text: str
    translation: str
    tier: str
    pronunciation: str | None = None
    gloss: str | None = None
    category_id: str | None = None
    example: str | None = None  # sentence using the item

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        category_id: str | None = None,
        scale: TierScale = DEFAULT_SCALE,
    ) -> VocabularyItem:
        """
        Create an item from a dictionary (JSON).

        Accepts the legacy field names (turkish / arabic / english /
        difficultyLevel / turkishSentence) alongside the canonical ones. A
        missing tier defaults to the lowest tier of the scale.
        """
        text = data.get("text") or data.get("turkish")
        translation = data.get("translation") or data.get("arabic") or data.get("english")
        if not text or not translation:
            raise InvalidArgument(f"Item needs text and translation: {dict(data)!r}")

        item_id = data.get("id")
        if item_id is None or item_id == "":
            item_id = text

        gloss = data.get("gloss")
        if gloss is None and data.get("arabic") and data.get("english"):
            gloss = data.get("english")

        return cls(
            id=str(item_id),
            text=str(text),
            translation=str(translation),
            tier=str(data.get("tier") or data.get("difficultyLevel") or scale.lowest),
            pronunciation=data.get("pronunciation") or None,
            gloss=gloss,
            category_id=data.get("category_id") or category_id,
            example=data.get("example") or data.get("turkishSentence") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "translation": self.translation,
            "tier": self.tier,
            "pronunciation": self.pronunciation,
            "gloss": self.gloss,
            "category_id": self.category_id,
            "example": self.example,
        }


@dataclass
class Category:
    """A named group of vocabulary items."""

    id: str
    name: str
    items: list[VocabularyItem] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.items)


# =============================================================================
# Corpus
# =============================================================================


class VocabularyCorpus:
    """
    Read-only collection of categories.

    Features:
    - Loading from JSON file, HTTP endpoint or mapping
    - Lookup by category and by item id
    - Malformed items are skipped (and counted), not fatal
    """

    def __init__(self, categories: list[Category] | None = None, scale: TierScale = DEFAULT_SCALE):
        self.scale = scale
        self._categories: dict[str, Category] = {}
        self._items: dict[str, VocabularyItem] = {}
        self.skipped: int = 0
        for category in categories or []:
            self.add_category(category)

    # -- construction ---------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], scale: TierScale = DEFAULT_SCALE) -> VocabularyCorpus:
        """Build a corpus from {categoryId: {"name": ..., "items"|"words": [...]}}."""
        if not isinstance(data, Mapping):
            raise InvalidArgument(f"Corpus must be a mapping, got {type(data).__name__}")

        corpus = cls(scale=scale)
        for category_id, category_data in data.items():
            if not isinstance(category_data, Mapping):
                logger.warning(f"Skipping category '{category_id}': not a mapping")
                continue

            raw_items = category_data.get("items", category_data.get("words", []))
            items: list[VocabularyItem] = []
            for raw in raw_items if isinstance(raw_items, list) else []:
                try:
                    item = VocabularyItem.from_dict(raw, category_id=category_id, scale=scale)
                    scale.rank(item.tier)
                    items.append(item)
                except (InvalidArgument, AttributeError, TypeError) as e:
                    corpus.skipped += 1
                    logger.warning(f"Skipping malformed item in '{category_id}': {e}")

            corpus.add_category(
                Category(
                    id=str(category_id),
                    name=str(category_data.get("name") or category_id),
                    items=items,
                )
            )

        logger.info(
            f"Corpus loaded: {corpus.total_items} items in {len(corpus._categories)} categories "
            f"({corpus.skipped} skipped)"
        )
        return corpus

    @classmethod
    def load(cls, path: Path, scale: TierScale = DEFAULT_SCALE) -> VocabularyCorpus:
        """Load a corpus from a JSON file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise NotFound(f"Cannot read corpus file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidArgument(f"Corpus file {path} is not valid JSON: {e}") from e
        return cls.from_mapping(data, scale=scale)

    @classmethod
    def fetch(
        cls,
        url: str,
        scale: TierScale = DEFAULT_SCALE,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> VocabularyCorpus:
        """Fetch a corpus from the static vocabulary endpoint."""
        owns_client = client is None
        http = client or httpx.Client(timeout=timeout)
        try:
            response = http.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise NotFound(f"Cannot fetch corpus from {url}: {e}") from e
        except ValueError as e:
            raise InvalidArgument(f"Corpus at {url} is not valid JSON: {e}") from e
        finally:
            if owns_client:
                http.close()
        return cls.from_mapping(data, scale=scale)

    def add_category(self, category: Category) -> None:
        if category.id in self._categories:
            logger.warning(f"Category '{category.id}' loaded twice, replacing")
            for item in self._categories[category.id].items:
                self._items.pop(item.id, None)
        self._categories[category.id] = category
        for item in category.items:
            if item.id in self._items:
                logger.debug(f"Item id '{item.id}' appears in more than one category")
            self._items[item.id] = item

    # -- queries --------------------------------------------------------------

    @property
    def total_items(self) -> int:
        return sum(c.size for c in self._categories.values())

    def category_ids(self) -> list[str]:
        return list(self._categories)

    def categories(self) -> Iterator[Category]:
        return iter(self._categories.values())

    def category(self, category_id: str) -> Category:
        try:
            return self._categories[category_id]
        except KeyError:
            raise NotFound(f"Unknown category: {category_id}") from None

    def has_category(self, category_id: str) -> bool:
        return category_id in self._categories

    def items_for(self, category_id: str) -> list[VocabularyItem]:
        return list(self.category(category_id).items)

    def find_item(self, item_id: str) -> VocabularyItem | None:
        return self._items.get(item_id)

    def __len__(self) -> int:
        return self.total_items
