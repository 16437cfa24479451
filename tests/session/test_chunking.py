# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for byte-bounded chunking."""

import math

import pytest

from flysession.session.chunking import join_chunks, split_by_bytes


class TestSplitByBytes:
    def test_empty_input_gives_no_chunks(self):
        assert split_by_bytes("", 10) == []

    def test_input_within_limit_is_single_chunk(self):
        assert split_by_bytes("hello", 5) == ["hello"]
        assert split_by_bytes("hello", 4000) == ["hello"]

    def test_ascii_chunk_count(self):
        value = "x" * 10_001
        chunks = split_by_bytes(value, 4000)
        assert len(chunks) == math.ceil(10_001 / 4000)
        assert [len(c) for c in chunks] == [4000, 4000, 2001]

    def test_exact_multiple(self):
        assert len(split_by_bytes("a" * 8000, 4000)) == 2

    def test_never_splits_multibyte_characters(self):
        value = "é" * 5  # 2 bytes each
        chunks = split_by_bytes(value, 3)
        assert chunks == ["é"] * 5
        assert b"".join(c.encode("utf-8") for c in chunks) == value.encode("utf-8")

    def test_mixed_width_chunks_respect_limit(self):
        value = "a€b😀c" * 50
        chunks = split_by_bytes(value, 7)
        assert all(len(c.encode("utf-8")) <= 7 for c in chunks)
        assert join_chunks(chunks) == value

    def test_character_wider_than_limit_gets_own_chunk(self):
        assert split_by_bytes("a😀b", 2) == ["a", "😀", "b"]

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            split_by_bytes("abc", 0)


class TestJoinChunks:
    def test_concatenates_in_order(self):
        assert join_chunks(["ab", "cd", "e"]) == "abcde"

    def test_empty(self):
        assert join_chunks([]) == ""
