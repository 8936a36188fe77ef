"""
Token-budget chunking of extracted text for quiz generation.
Greedy accumulation of paragraphs (blank-line boundaries); a paragraph over budget is split on sentences.
Token count is estimated at ~4 characters per token.
"""
import logging
import math
import re
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 100_000
CHARS_PER_TOKEN = 4

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
# Terminal punctuation stays with its sentence
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")

PARAGRAPH_JOIN = "\n\n"
SENTENCE_JOIN = " "


def estimate_token_count(text: str) -> int:
    """Rough estimate: 1 token ≈ 4 characters. Monotonic in text length."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _units(text: str, max_tokens: int) -> Iterator[tuple[str, str]]:
    """Yield (unit, separator-before-unit): whole paragraphs, or sentences of an oversized paragraph."""
    for paragraph in _PARAGRAPH_SPLIT_RE.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if estimate_token_count(paragraph) <= max_tokens:
            yield paragraph, PARAGRAPH_JOIN
            continue
        sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(paragraph) if s.strip()]
        for i, sentence in enumerate(sentences):
            yield sentence, PARAGRAPH_JOIN if i == 0 else SENTENCE_JOIN


def chunk_text(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> list[str]:
    """
    Split text into ordered chunks whose estimated token count is within max_tokens.
    Text under budget comes back as a single chunk, unchanged.
    A single sentence larger than the budget is kept whole (best effort).
    """
    if max_tokens < 1:
        raise ValueError("max_tokens must be positive")
    if estimate_token_count(text) <= max_tokens:
        return [text]

    max_chars = max_tokens * CHARS_PER_TOKEN  # estimate <= max_tokens  <=>  len <= max_chars
    chunks: list[str] = []
    parts: list[str] = []
    current_len = 0
    for unit, sep in _units(text, max_tokens):
        if parts and current_len + len(sep) + len(unit) > max_chars:
            chunks.append("".join(parts))
            parts, current_len = [], 0
        if parts:
            parts.append(sep)
            current_len += len(sep)
        parts.append(unit)
        current_len += len(unit)
    if parts:
        chunks.append("".join(parts))

    logger.debug("chunk_text: %s chars -> %s chunks (max_tokens=%s)", len(text), len(chunks), max_tokens)
    return chunks or [text]
