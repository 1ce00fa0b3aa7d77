"""
Entity resolver.

Maps a free-text task reference (plus optional exact filters) onto the
commitment collection, and narrows it to a single commitment for mutations.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from mizan.core.logger import setup_logger
from mizan.models.commitment import Commitment
from mizan.models.enums import ResolutionStatus
from mizan.models.intent import TaskQuery
from mizan.utils.datetime_utils import resolve_date_reference

logger = setup_logger(__name__)

# Query words too common to identify a task
STOP_WORDS = frozenset(
    {
        "the", "a", "an", "to", "for", "of", "in", "on", "at", "is", "it", "my",
        "task", "do", "add", "delete", "remove", "edit", "change",
        "مهمة", "احذف", "أضف", "عدل", "غير",
    }
)

# Task-domain terms grouped by concept (English and Arabic)
SYNONYM_GROUPS: tuple[frozenset[str], ...] = tuple(
    frozenset(group)
    for group in (
        # Exercise / fitness
        ("gym", "workout", "exercise", "training", "fitness", "sport", "تمارين", "رياضة", "جيم", "تمرين"),
        # Study / learning
        ("study", "studying", "homework", "learning", "read", "reading", "دراسة", "مذاكرة", "قراءة"),
        # Work
        ("work", "job", "meeting", "office", "عمل", "اجتماع", "مكتب"),
        # Cleaning
        ("clean", "cleaning", "organize", "tidy", "تنظيف", "ترتيب"),
        # Shopping
        ("shop", "shopping", "buy", "purchase", "store", "تسوق", "شراء"),
        # Cooking / food
        ("cook", "cooking", "food", "meal", "طبخ", "طعام", "أكل"),
        # Rest
        ("sleep", "rest", "nap", "نوم", "راحة"),
        # Worship
        ("prayer", "pray", "salah", "صلاة", "عبادة", "quran", "قرآن"),
        # Calls
        ("call", "phone", "contact", "اتصال", "هاتف"),
        # Walking / running
        ("walk", "walking", "run", "running", "jog", "مشي", "جري"),
    )
)


def tokenize(text: str) -> list[str]:
    """
    Split text into lower-cased alphanumeric tokens.

    Combining marks (e.g. Arabic diacritics) stay inside their word.
    """
    tokens: list[str] = []
    current: list[str] = []
    for char in text.casefold():
        if char.isalnum() or unicodedata.category(char).startswith("M"):
            current.append(char)
        elif current:
            tokens.append("".join(current))
            current = []
    if current:
        tokens.append("".join(current))
    return tokens


def are_synonyms(first: str, second: str) -> bool:
    return any(first in group and second in group for group in SYNONYM_GROUPS)


def fuzzy_match(title: str, query: str) -> bool:
    """
    Check whether a task title matches a free-text reference.

    Order: substring either way, then token substring/superstring (stop
    words in the query skipped), then synonym groups.
    """
    title_lower = title.casefold().strip()
    query_lower = query.casefold().strip()
    if not query_lower:
        return False
    if query_lower in title_lower or (title_lower and title_lower in query_lower):
        return True

    title_tokens = tokenize(title_lower)
    query_tokens = [token for token in tokenize(query_lower) if token not in STOP_WORDS]

    for query_token in query_tokens:
        for title_token in title_tokens:
            if query_token in title_token or title_token in query_token:
                return True
    for query_token in query_tokens:
        for title_token in title_tokens:
            if are_synonyms(title_token, query_token):
                return True
    return False


@dataclass
class Resolution:
    """Outcome of narrowing a query to one commitment."""

    status: ResolutionStatus
    commitment: Optional[Commitment] = None
    matches: list[Commitment] = field(default_factory=list)


class EntityResolver:
    """Service filtering commitments and resolving references to one of them."""

    def filter(
        self,
        query: TaskQuery,
        commitments: list[Commitment],
        today: date,
    ) -> list[Commitment]:
        """
        Apply a conjunctive query.

        Title matching is fuzzy; date, category, completion and id are exact.

        Args:
            query: Task query
            commitments: Full commitment snapshot
            today: Reference day for relative dates

        Returns:
            Matching commitments in snapshot order
        """
        filtered = list(commitments)

        if query.title_contains:
            filtered = [c for c in filtered if fuzzy_match(c.title, query.title_contains)]

        if query.date:
            target = resolve_date_reference(query.date, today)
            filtered = [c for c in filtered if c.scheduled_day == target]

        if query.category:
            category = query.category.strip().lower()
            filtered = [c for c in filtered if c.category.value == category]

        if query.is_completed is not None:
            filtered = [c for c in filtered if c.is_completed == query.is_completed]

        if query.task_id is not None:
            filtered = [c for c in filtered if c.id == query.task_id]

        return filtered

    def resolve_one(
        self,
        query: TaskQuery,
        commitments: list[Commitment],
        today: date,
    ) -> Resolution:
        """
        Narrow a query to exactly one commitment.

        Never guesses: more than one match is reported as ambiguous, and a
        query with no fields set refers to nothing.
        """
        if query.is_empty:
            logger.debug("Empty query refers to no commitment")
            return Resolution(status=ResolutionStatus.NOT_FOUND)
        matches = self.filter(query, commitments, today)
        if not matches:
            logger.debug(f"No commitment matches ({query.describe()})")
            return Resolution(status=ResolutionStatus.NOT_FOUND)
        if len(matches) > 1:
            logger.debug(f"{len(matches)} commitments match ({query.describe()})")
            return Resolution(status=ResolutionStatus.AMBIGUOUS, matches=matches)
        return Resolution(status=ResolutionStatus.FOUND, commitment=matches[0], matches=matches)
