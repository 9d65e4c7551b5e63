"""Tests for text chunking."""

from __future__ import annotations

import pytest

from topic_rag.config import ChunkerConfig
from topic_rag.errors import ConfigurationError, EmptyInputError
from topic_rag.segment import TextChunker


def _merge_word_chunks(chunks) -> list[str]:
    """Reassemble chunks by dropping the words each one shares with its predecessor."""

    merged: list[str] = []
    for chunk in chunks:
        words = chunk.text.split()
        overlap = 0
        for size in range(min(len(merged), len(words)), 0, -1):
            if merged[-size:] == words[:size]:
                overlap = size
                break
        merged.extend(words[overlap:])
    return merged


@pytest.mark.parametrize("text", ["", "   ", "\n\t  \n", None])
def test_blank_text_is_rejected_before_iteration(text) -> None:
    chunker = TextChunker()
    with pytest.raises(EmptyInputError):
        chunker.split(text)


def test_split_is_lazy() -> None:
    chunks = TextChunker().split("Midterm exams are in October.")
    assert iter(chunks) is chunks
    assert [chunk.text for chunk in chunks] == ["Midterm exams are in October."]
    assert list(chunks) == []


def test_short_text_gives_single_trimmed_chunk() -> None:
    chunks = list(TextChunker().split("  Midterm exams are in October. Sports day is in November.  \n"))
    assert len(chunks) == 1
    assert chunks[0].text == "Midterm exams are in October. Sports day is in November."
    assert chunks[0].index == 0
    assert chunks[0].payload() == {
        "text": chunks[0].text,
        "chunk_index": 0,
        "timestamp": chunks[0].created_at,
    }


def test_long_text_respects_size_and_reassembles() -> None:
    words = [f"word{i}" for i in range(900)]
    text = " ".join(words)
    chunks = list(TextChunker().split(text))

    assert len(chunks) > 1
    assert [chunk.index for chunk in chunks] == list(range(len(chunks)))
    assert all(len(chunk.text) <= 1000 for chunk in chunks)
    assert _merge_word_chunks(chunks) == words


def test_consecutive_chunks_overlap() -> None:
    text = " ".join(f"token{i}" for i in range(500))
    chunks = list(TextChunker(ChunkerConfig(chunk_size=200, chunk_overlap=50)).split(text))

    for previous, current in zip(chunks, chunks[1:]):
        first_word = current.text.split()[0]
        assert first_word in previous.text.split()


def test_paragraph_boundaries_preferred() -> None:
    paragraphs = ["alpha " * 60, "beta " * 60, "gamma " * 60]
    text = "\n\n".join(p.strip() for p in paragraphs)
    chunks = list(TextChunker(ChunkerConfig(chunk_size=400, chunk_overlap=40)).split(text))
    assert [chunk.text.split()[0] for chunk in chunks] == ["alpha", "beta", "gamma"]


def test_invalid_chunker_config() -> None:
    with pytest.raises(ConfigurationError):
        ChunkerConfig(chunk_size=100, chunk_overlap=100)
    with pytest.raises(ConfigurationError):
        ChunkerConfig(chunk_size=0)
