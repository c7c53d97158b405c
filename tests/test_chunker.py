"""
Chunker Tests

Covers word-window splitting: coverage, ordering, window sizes and the
empty-input edge cases.
"""

import pytest

from rag_chat_server.ingest.chunker import DEFAULT_MAX_WORDS, chunk_text


def _words(n):
    return [f"w{i}" for i in range(n)]


class TestChunkText:
    """Tests for chunk_text()."""

    def test_1500_words_make_three_windows(self):
        chunks = chunk_text(" ".join(_words(1500)), 700)

        assert [len(c.split()) for c in chunks] == [700, 700, 100]

    def test_concatenation_reproduces_word_sequence(self):
        """Every word appears exactly once, in source order."""
        words = _words(2345)
        text = "  \n".join(words)

        chunks = chunk_text(text, 100)

        rejoined = " ".join(chunks).split()
        assert rejoined == words

    def test_windows_respect_limit(self):
        chunks = chunk_text(" ".join(_words(1001)), 250)

        assert all(len(c.split()) <= 250 for c in chunks)
        assert len(chunks) == 5

    def test_whitespace_is_collapsed(self):
        assert chunk_text("alpha\t\tbeta\n\n gamma", 10) == ["alpha beta gamma"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t \n", None])
    def test_empty_text_yields_no_chunks(self, text):
        assert chunk_text(text) == []

    def test_exact_multiple_has_no_trailing_empty_chunk(self):
        chunks = chunk_text(" ".join(_words(1400)), 700)

        assert len(chunks) == 2

    def test_default_window(self):
        assert DEFAULT_MAX_WORDS == 700
        assert len(chunk_text(" ".join(_words(701)))) == 2

    def test_invalid_window_rejected(self):
        with pytest.raises(ValueError):
            chunk_text("some words", 0)
