"""
Error types raised by the knowledge base search engine.

Callers are expected to tell "found nothing relevant" (an empty result list
over a non-empty corpus) apart from "system not ready" (EmptyCorpus,
RebuildFailed). Scoring itself never raises: missing statistics contribute
zero instead.
"""


class KnowledgeSearchError(Exception):
    """Base class for every error raised by kbsearch"""


class InvalidQuery(KnowledgeSearchError):
    """Query is empty, too short or too long after trimming"""

    def __init__(self, message: str, query: str = ""):
        super().__init__(message)
        self.query = query


class NoSearchableTerms(KnowledgeSearchError):
    """Query reduced to nothing after tokenization and stop-word removal"""

    def __init__(self, query: str):
        super().__init__(
            f"Query '{query[:50]}' has no searchable terms after stop-word removal"
        )
        self.query = query


class EmptyCorpus(KnowledgeSearchError):
    """No documents are available in the knowledge base"""

    def __init__(self, message: str = "No documents available in knowledge base"):
        super().__init__(message)


class RebuildFailed(KnowledgeSearchError):
    """
    Document source could not be read while rebuilding the index.

    When a previous snapshot exists it keeps serving and the failure rides on
    the response as rebuild_error (SearchResponse.raise_for_status() turns it
    back into this error). Otherwise it reaches a search caller only when
    there is nothing to search at all, or when the rebuild was forced.
    """

    def __init__(self, message: str, has_previous_snapshot: bool = False):
        super().__init__(message)
        self.has_previous_snapshot = has_previous_snapshot
