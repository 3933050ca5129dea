"""Cache key builders.  See services/cache.py for the layout."""

from __future__ import annotations

from algoarena.models.summaries import PageFilter

BULK_PROGRESS = "progress:bulk:"
STATS = "progress:stats:"
SOLVED = "progress:solved:"
GLOBAL_STATS = "progress:global"
CATEGORIES = "categories:progress:"
QUESTIONS = "questions:summary:"


def bulk_progress(user_id: str) -> str:
    return f"{BULK_PROGRESS}{user_id}"


def stats(user_id: str) -> str:
    return f"{STATS}{user_id}"


def solved(user_id: str, question_id: str) -> str:
    return f"{SOLVED}{user_id}:{question_id}"


def solved_prefix(user_id: str) -> str:
    return f"{SOLVED}{user_id}:"


def categories(user_id: str) -> str:
    return f"{CATEGORIES}{user_id}"


def questions(user_id: str, page_filter: PageFilter) -> str:
    return f"{QUESTIONS}{user_id}:{page_filter.cache_suffix()}"


def questions_prefix(user_id: str) -> str:
    return f"{QUESTIONS}{user_id}:"
