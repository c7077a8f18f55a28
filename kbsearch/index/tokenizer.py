"""
Tokenizer shared by indexing and querying.

Tokenization pipeline:
1. Lowercase conversion
2. Replace non-word characters with whitespace
3. Split on whitespace
4. Drop tokens of length <= 2
5. Drop stopwords (question words, articles, pronouns, request verbs)
6. Optionally cap the token count (first N tokens)

Indexing and querying MUST go through the same function: a query term that
is not tokenized exactly like corpus terms is invisible to the index.
"""

import re
from typing import List, Optional

# Stopwords tuned for natural-language questions against a small knowledge base
STOPWORDS = frozenset([
    'what', 'is', 'are', 'the', 'how', 'why', 'when', 'where', 'can', 'could',
    'would', 'should', 'do', 'does', 'did', 'a', 'an', 'and', 'or', 'but',
    'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by', 'from', 'about',
    'search', 'find', 'tell', 'me', 'give', 'show', 'explain', 'describe',
    'want', 'know', 'need', 'help', 'this', 'that', 'these', 'those',
    'i', 'you', 'he', 'she', 'it', 'we', 'they',
])

MIN_TOKEN_LENGTH = 3

_NON_WORD = re.compile(r'[^\w\s]')
_WORD = re.compile(r'\w+')


def tokenize(text: str, max_tokens: Optional[int] = None) -> List[str]:
    """
    Tokenize text into normalized terms.

    Args:
        text: Input text to tokenize
        max_tokens: Keep only the first N terms (per-document cap for
            pathological inputs). None = no cap.

    Returns:
        List of lowercase terms in text order (duplicates preserved)

    Examples:
        >>> tokenize("What are Machine-Learning algorithms?")
        ['machine', 'learning', 'algorithms']

        >>> tokenize("Deploy to AWS in 2024")
        ['deploy', 'aws', '2024']

        >>> tokenize("the is a")
        []
    """
    if not text:
        return []

    text = _NON_WORD.sub(' ', text.lower())

    tokens = [
        t for t in text.split()
        if len(t) >= MIN_TOKEN_LENGTH and t not in STOPWORDS
    ]

    if max_tokens is not None:
        tokens = tokens[:max_tokens]

    return tokens


def words(text: str) -> List[str]:
    """
    Raw lowercase words with no length or stopword filtering.

    Used for cue detection ("vs", "how", "ai") where the tokenizer would
    drop the very words that carry intent.

        >>> words("AI vs. ML: how?")
        ['ai', 'vs', 'ml', 'how']
    """
    if not text:
        return []
    return _WORD.findall(text.lower())
