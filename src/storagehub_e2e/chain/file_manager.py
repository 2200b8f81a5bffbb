"""
Local file fingerprinting and file-key derivation.

The fingerprint is the root of the file's chunk trie: the file is cut into
1024-byte chunks, chunk ``i`` is stored under the 8-byte big-endian key
``i``, and the root is taken over a Substrate ``LayoutV1<BlakeTwo256>``
trie (see ``storagehub_e2e.chain.trie``). Chunks are streamed, so the file
is never fully loaded.

The file key is the BLAKE2b-256 hash of the SCALE-encoded ``FileMetadata``:

    owner: Vec<u8>, bucket_id: Vec<u8>, location: Vec<u8>,
    file_size: Compact<u64>, fingerprint: H256
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Optional, Union

from storagehub_e2e.chain.trie import TrieLeaf, blake2_256, scale_encode, trie_root
from storagehub_e2e.utils.validation import to_bytes32

__all__ = [
    "FILE_CHUNK_SIZE",
    "FileManager",
    "blake2_256",
    "chunk_trie_key",
    "encode_file_metadata",
    "compute_file_key",
]

FILE_CHUNK_SIZE = 1024
ADDRESS_LENGTH = 20
MAX_FILE_SIZE = (1 << 64) - 1


def chunk_trie_key(chunk_id: int) -> bytes:
    return chunk_id.to_bytes(8, "big")


def _address_bytes(owner: Union[str, bytes]) -> bytes:
    if isinstance(owner, (bytes, bytearray)):
        raw = bytes(owner)
    else:
        hex_str = owner[2:] if owner.startswith("0x") else owner
        raw = bytes.fromhex(hex_str)
    if len(raw) != ADDRESS_LENGTH:
        raise ValueError("owner must be a 20-byte account address")
    return raw


def encode_file_metadata(
    owner: Union[str, bytes],
    bucket_id: Union[str, bytes],
    location: str,
    size: int,
    fingerprint: Union[str, bytes],
) -> bytes:
    """SCALE-encode the ``FileMetadata`` a file key is derived from."""
    if size < 0 or size > MAX_FILE_SIZE:
        raise ValueError("size must fit in u64")
    return b"".join(
        (
            scale_encode("Bytes", _address_bytes(owner)),
            scale_encode("Bytes", to_bytes32(bucket_id, "bucket_id")),
            scale_encode("Bytes", location.encode("utf-8")),
            scale_encode("Compact<u64>", size),
            scale_encode("H256", "0x" + to_bytes32(fingerprint, "fingerprint").hex()),
        )
    )


def compute_file_key(
    owner: Union[str, bytes],
    bucket_id: Union[str, bytes],
    location: str,
    size: int,
    fingerprint: Union[str, bytes],
) -> bytes:
    return blake2_256(encode_file_metadata(owner, bucket_id, location, size, fingerprint))


class FileManager:
    """
    Wraps one local file for upload.

    Example:
        ```python
        manager = FileManager("files/report.pdf")
        fingerprint = manager.get_fingerprint()
        file_key = manager.compute_file_key(account.address, bucket_id, "report.pdf")
        ```
    """

    def __init__(self, path: Union[str, os.PathLike], chunk_size: int = FILE_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.path = Path(path)
        self.chunk_size = chunk_size
        self._fingerprint: Optional[bytes] = None

    def get_file_size(self) -> int:
        return self.path.stat().st_size

    def iter_chunks(self) -> Iterator[bytes]:
        with self.path.open("rb") as fh:
            while True:
                chunk = fh.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

    def get_fingerprint(self) -> bytes:
        """Root of the file's chunk trie (cached after first call)."""
        if self._fingerprint is None:
            self._fingerprint = trie_root(
                TrieLeaf.of(chunk_trie_key(index), chunk)
                for index, chunk in enumerate(self.iter_chunks())
            )
        return self._fingerprint

    def compute_file_key(
        self,
        owner: Union[str, bytes],
        bucket_id: Union[str, bytes],
        location: str,
    ) -> bytes:
        return compute_file_key(
            owner,
            bucket_id,
            location,
            self.get_file_size(),
            self.get_fingerprint(),
        )
