"""Error kinds raised by the progress subsystem.

Two families, handled very differently:

  Paths of record (stores): failures SURFACE to the caller:
    NotFound          referenced user / question / category does not exist
    AlreadyExists     a catalog write would create a duplicate
    StoreUnavailable  the persistence layer failed mid-computation

  Optimization paths (cache, grouped counts): failures are ABSORBED:
    CacheUnavailable        cache error or timeout → compute from the stores
    AggregationUnavailable  grouped count failed → one count per question

The API layer maps the surfaced kinds to HTTP status codes in main.py.
"""

from __future__ import annotations


class ProgressError(Exception):
    """Base class for every error defined here."""


class NotFound(ProgressError):
    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class AlreadyExists(ProgressError):
    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} already exists: {ident}")
        self.kind = kind
        self.ident = ident


class StoreUnavailable(ProgressError):
    """The source of truth could not be read or written."""


class CacheUnavailable(ProgressError):
    """The cache backend errored or did not answer in time."""


class AggregationUnavailable(ProgressError):
    """The store could not run a grouped count query."""
