"""
Vocabulary corpus: items, categories, tiers and collation.
"""

from .collation import COLLATORS, Collator, default_collator, get_collator, turkish_collator
from .corpus import Category, VocabularyCorpus, VocabularyItem
from .tiers import CEFR_TIERS, DEFAULT_SCALE, TierScale

__all__ = [
    "VocabularyItem",
    "Category",
    "VocabularyCorpus",
    "TierScale",
    "CEFR_TIERS",
    "DEFAULT_SCALE",
    "Collator",
    "COLLATORS",
    "default_collator",
    "turkish_collator",
    "get_collator",
]
