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
"""Byte-bounded string chunking for cookie storage."""

from __future__ import annotations

from collections.abc import Iterable


def split_by_bytes(value: str, max_bytes: int) -> list[str]:
    """Split *value* into chunks whose UTF-8 encoding is at most *max_bytes*.

    Characters are never split across chunks. A single character wider than
    *max_bytes* still gets a chunk of its own.

    >>> split_by_bytes("abcdef", 4)
    ['abcd', 'ef']
    >>> split_by_bytes("", 4)
    []
    """
    if max_bytes < 1:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    chunks: list[str] = []
    current: list[str] = []
    current_bytes = 0

    for char in value:
        char_bytes = len(char.encode("utf-8"))
        if current and current_bytes + char_bytes > max_bytes:
            chunks.append("".join(current))
            current = []
            current_bytes = 0
        current.append(char)
        current_bytes += char_bytes

    if current:
        chunks.append("".join(current))

    return chunks


def join_chunks(chunks: Iterable[str]) -> str:
    """Concatenate chunks in order."""
    return "".join(chunks)
