"""
Substrate Patricia-Merkle trie root (``LayoutV1<BlakeTwo256>``).

StorageHub fingerprints a file as the root of a trie whose keys are chunk
ids and whose values are the raw chunks. This module computes that root
without building the trie in memory: only the leaves are kept, and values
of 33 bytes or more are replaced by their hash up front.

Node encoding (no extension nodes):

    leaf:                 0b01 header, partial key, inline value
    branch without value: 0b10 header, partial key, child bitmap, children
    branch with value:    0b11 header, partial key, bitmap, value, children
    hashed-value leaf:    0b001 header, partial key, hash(value)
    hashed-value branch:  0b0001 header, partial key, bitmap, hash(value), children

Child nodes shorter than 32 bytes are embedded; longer ones are referenced
by hash. The root is always the hash of the root node.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from scalecodec.base import RuntimeConfigurationObject

__all__ = [
    "HASH_LENGTH",
    "INLINE_VALUE_THRESHOLD",
    "TrieLeaf",
    "blake2_256",
    "scale_encode",
    "trie_root",
]

HASH_LENGTH = 32
INLINE_VALUE_THRESHOLD = 33

EMPTY_TRIE = b"\x00"

# (prefix, mask bits) per node kind
LEAF = (0b01 << 6, 2)
BRANCH_NO_VALUE = (0b10 << 6, 2)
BRANCH_WITH_VALUE = (0b11 << 6, 2)
HASHED_VALUE_LEAF = (0b001 << 5, 3)
HASHED_VALUE_BRANCH = (0b0001 << 4, 4)

_runtime = RuntimeConfigurationObject()


def blake2_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=HASH_LENGTH).digest()


def scale_encode(type_string: str, value: Any) -> bytes:
    """SCALE-encode ``value`` as ``type_string`` (e.g. ``"Compact<u64>"``)."""
    return bytes(_runtime.create_scale_object(type_string).encode(value).data)


def _compact(n: int) -> bytes:
    return scale_encode("Compact<u32>", n)


@dataclass(frozen=True)
class TrieLeaf:
    """
    One key/value pair of the trie.

    ``value`` holds the raw bytes when ``hashed`` is False and the 32-byte
    value hash otherwise.
    """

    key: bytes
    value: bytes
    hashed: bool = False

    @classmethod
    def of(cls, key: bytes, value: bytes) -> "TrieLeaf":
        if len(value) >= INLINE_VALUE_THRESHOLD:
            return cls(key, blake2_256(value), hashed=True)
        return cls(key, bytes(value))

    def encoded_value(self) -> bytes:
        if self.hashed:
            return self.value
        return _compact(len(self.value)) + self.value


def _nibbles(key: bytes) -> Tuple[int, ...]:
    out: List[int] = []
    for byte in key:
        out.append(byte >> 4)
        out.append(byte & 0x0F)
    return tuple(out)


def _header(kind: Tuple[int, int], size: int) -> bytes:
    prefix, mask_bits = kind
    max_value = 255 >> mask_bits
    if size < max_value:
        return bytes([prefix + size])
    out = bytearray([prefix + max_value])
    rem = size - (max_value - 1)
    while rem >= 256:
        out.append(255)
        rem -= 255
    out.append(rem - 1)
    return bytes(out)


def _partial(kind: Tuple[int, int], nibbles: Sequence[int]) -> bytes:
    out = bytearray(_header(kind, len(nibbles)))
    start = len(nibbles) % 2
    if start:
        out.append(nibbles[0])
    for i in range(start, len(nibbles), 2):
        out.append((nibbles[i] << 4) | nibbles[i + 1])
    return bytes(out)


def _shared_prefix(a: Sequence[int], b: Sequence[int]) -> int:
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def _child_reference(encoded: bytes) -> bytes:
    if len(encoded) < HASH_LENGTH:
        return _compact(len(encoded)) + encoded
    return _compact(HASH_LENGTH) + blake2_256(encoded)


def _encode_node(entries: Sequence[Tuple[Tuple[int, ...], TrieLeaf]], cursor: int) -> bytes:
    if not entries:
        return EMPTY_TRIE

    first_key, first_leaf = entries[0]
    if len(entries) == 1:
        kind = HASHED_VALUE_LEAF if first_leaf.hashed else LEAF
        return _partial(kind, first_key[cursor:]) + first_leaf.encoded_value()

    shared = min(_shared_prefix(first_key, key) for key, _ in entries[1:])
    partial: Tuple[int, ...] = ()
    if shared > cursor:
        partial = first_key[cursor:shared]
        cursor = shared

    value: Optional[TrieLeaf] = None
    rest = entries
    if len(first_key) == cursor:
        value = first_leaf
        rest = entries[1:]

    groups: List[List[Tuple[Tuple[int, ...], TrieLeaf]]] = [[] for _ in range(16)]
    for key, leaf in rest:
        groups[key[cursor]].append((key, leaf))

    if value is None:
        kind = BRANCH_NO_VALUE
    elif value.hashed:
        kind = HASHED_VALUE_BRANCH
    else:
        kind = BRANCH_WITH_VALUE

    bitmap = 0
    for index, group in enumerate(groups):
        if group:
            bitmap |= 1 << index

    out = bytearray(_partial(kind, partial))
    out += bitmap.to_bytes(2, "little")
    if value is not None:
        out += value.encoded_value()
    for group in groups:
        if group:
            out += _child_reference(_encode_node(group, cursor + 1))
    return bytes(out)


def trie_root(leaves: Iterable[TrieLeaf]) -> bytes:
    """
    Root hash of the trie holding ``leaves``.

    Keys must be distinct. An empty trie has root ``blake2_256(b"\\x00")``.
    """
    entries = sorted(((_nibbles(leaf.key), leaf) for leaf in leaves), key=lambda e: e[0])
    return blake2_256(_encode_node(entries, 0))
