"""
Document loading for the knowledge base.

Turns (filename, raw_text) pairs into Document records:
1. Title from the first top-level heading (fallback: filename without extension)
2. Display body: markdown preserved, title line removed, blank runs collapsed
3. Plain body: emphasis and inline-code markers stripped (term extraction)
4. Tags from filename parts, title words and technology keywords
5. Relevance prior (0.5 base, boosted for longer / better-titled content)

Sources that fail to parse are logged and skipped. An empty document set is
valid input: it simply produces an empty index downstream.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .models import Document

logger = logging.getLogger(__name__)

RawSource = Tuple[str, Union[str, bytes]]

MAX_TAGS = 10

# Technology keywords recognised as tags when present in the body
TECH_KEYWORDS = (
    'ai', 'artificial intelligence', 'machine learning', 'ml', 'deep learning',
    'data science', 'analytics', 'python', 'javascript', 'typescript', 'react',
    'cloud', 'aws', 'azure', 'docker', 'kubernetes', 'blockchain', 'crypto',
    'cybersecurity', 'security', 'quantum', 'computing', 'algorithm', 'database',
    'api', 'web', 'mobile', 'devops', 'agile', 'scrum',
)

_TITLE_RE = re.compile(r'^#\s+(.+)$', re.MULTILINE)
_BLANK_RUN_RE = re.compile(r'\n{3,}')
_EMPHASIS_RE = re.compile(r'\*{1,2}([^*]+)\*{1,2}')
_INLINE_CODE_RE = re.compile(r'`([^`]+)`')
_NAME_SPLIT_RE = re.compile(r'[-_\s]+')
_ID_RE = re.compile(r'[^a-z0-9]')
_KEYWORD_PATTERNS = tuple(
    (keyword, re.compile(r'\b' + re.escape(keyword) + r'\b'))
    for keyword in TECH_KEYWORDS
)


class DocumentSource(ABC):
    """Anything that can hand over the raw knowledge base"""

    @abstractmethod
    def read(self) -> Iterable[RawSource]:
        """
        Yield (filename, raw_text) pairs.

        Raises:
            OSError: If the source as a whole cannot be read
        """
        pass


class StaticSource(DocumentSource):
    """In-memory document source"""

    def __init__(self, pairs: Sequence[RawSource]):
        self._pairs = list(pairs)

    def read(self) -> Iterable[RawSource]:
        return list(self._pairs)

    def __repr__(self) -> str:
        return f"StaticSource({len(self._pairs)} documents)"


class DirectorySource(DocumentSource):
    """
    Markdown files in a directory, read in sorted filename order.

    A missing directory is an empty knowledge base (logged, not raised).
    A single unreadable file is logged and skipped; failing to list the
    directory itself propagates so the index cache can report RebuildFailed.
    """

    def __init__(self, path: Union[str, Path], suffix: str = ".md"):
        self.path = Path(path)
        self.suffix = suffix

    def read(self) -> Iterable[RawSource]:
        if not self.path.exists():
            logger.warning(f"Knowledge base directory not found: {self.path}")
            return []

        filenames = sorted(
            name for name in os.listdir(self.path)
            if name.endswith(self.suffix) and (self.path / name).is_file()
        )
        if not filenames:
            logger.warning(f"No {self.suffix} files found in {self.path}")
            return []

        pairs: List[RawSource] = []
        for name in filenames:
            try:
                pairs.append((name, (self.path / name).read_bytes()))
            except OSError as e:
                logger.error(f"Error loading {name}: {e}")

        return pairs

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.path)!r})"


def document_id(filename: str) -> str:
    """
    Deterministic document id from a filename.

        >>> document_id("Machine-Learning.md")
        'machine_learning'
    """
    base = os.path.splitext(filename)[0].lower()
    return _ID_RE.sub('_', base)


def extract_tags(title: str, content: str, filename: str) -> Tuple[str, ...]:
    """
    Tags from filename parts, title words and technology keywords.

    Returns at most MAX_TAGS tags, first occurrence wins.

        >>> extract_tags("Docker Fundamentals", "Containers on aws.", "docker-basics.md")
        ('docker', 'basics', 'fundamentals', 'aws')
    """
    tags: List[str] = []

    base = os.path.splitext(filename)[0].lower()
    tags.extend(part for part in _NAME_SPLIT_RE.split(base) if len(part) > 2)

    tags.extend(word for word in title.lower().split() if len(word) > 3)

    lower_content = content.lower()
    tags.extend(keyword for keyword, pattern in _KEYWORD_PATTERNS if pattern.search(lower_content))

    return tuple(dict.fromkeys(tags))[:MAX_TAGS]


def calculate_relevance(title: str, content: str, tags: Sequence[str]) -> float:
    """Quality prior in [0.5, 1.0] from title, length and tag count"""
    score = 0.5

    # Title quality
    if len(title) > 10:
        score += 0.1
    if 'Fundamentals' in title or 'Guide' in title:
        score += 0.1

    # Content quality
    if len(content) > 500:
        score += 0.1
    if len(content) > 1000:
        score += 0.1
    if len(content) > 2000:
        score += 0.1

    score += min(len(tags) * 0.02, 0.2)

    return min(score, 1.0)


def strip_markup(body: str) -> str:
    """Remove bold/italic and inline code markers"""
    text = _EMPHASIS_RE.sub(r'\1', body)
    return _INLINE_CODE_RE.sub(r'\1', text)


def parse_document(filename: str, raw_text: Union[str, bytes]) -> Optional[Document]:
    """
    Parse one markdown source into a Document.

    Args:
        filename: Source filename (identity of the document)
        raw_text: File content; bytes are decoded as UTF-8

    Returns:
        Document, or None if the source could not be parsed
    """
    try:
        if isinstance(raw_text, bytes):
            raw_text = raw_text.decode('utf-8')
        if not isinstance(raw_text, str):
            raise TypeError(f"expected text, got {type(raw_text).__name__}")

        title_match = _TITLE_RE.search(raw_text)
        if title_match:
            title = title_match.group(1).strip()
            body = raw_text[:title_match.start()] + raw_text[title_match.end():]
        else:
            title = os.path.splitext(filename)[0]
            body = raw_text

        body = _BLANK_RUN_RE.sub('\n\n', body.strip())
        plain_body = strip_markup(body)

        tags = extract_tags(title, plain_body, filename)

        return Document(
            id=document_id(filename),
            title=title,
            body=body,
            plain_body=plain_body,
            tags=tags,
            source_id=filename,
            relevance=calculate_relevance(title, plain_body, tags),
        )

    except (UnicodeDecodeError, TypeError) as e:
        logger.error(f"Error parsing {filename}: {e}")
        return None


def load_documents(sources: Iterable[RawSource]) -> List[Document]:
    """
    Parse every source, skipping failures and duplicate ids.

    Returns:
        Documents in source order
    """
    documents: List[Document] = []
    seen_ids = set()
    error_count = 0

    for filename, raw_text in sources:
        doc = parse_document(filename, raw_text)
        if doc is None:
            error_count += 1
            continue
        if doc.id in seen_ids:
            logger.warning(f"Skipping {filename}: duplicate document id '{doc.id}'")
            continue
        seen_ids.add(doc.id)
        documents.append(doc)

    logger.info(f"Loaded {len(documents)} documents ({error_count} errors)")
    return documents
