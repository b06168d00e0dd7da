"""
Short content hashes used to keep target filenames unique and stable.
"""

import hashlib
from pathlib import Path
from typing import Optional

import xxhash

from .constants import HASH_CHUNK_SIZE, HASH_LENGTH, get_logger
from .errors import HashError
from .notices import NoticeKind, NoticeSink


logger = get_logger()


def xxh32_hash(file_path: Path) -> str:
    """Stream the file through XXH32 and return 8 zero-padded lowercase hex chars."""
    hasher = xxhash.xxh32(seed=0)
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return f"{hasher.intdigest():08x}"


def sha1_hash(file_path: Path) -> str:
    """Return the leading 8 hex chars of the file's SHA-1 digest."""
    sha1 = hashlib.sha1()
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            sha1.update(chunk)
    return sha1.hexdigest()[:HASH_LENGTH]


def calc_hash(file_path: Path, notices: Optional[NoticeSink] = None) -> str:
    """Hash file content with XXH32, falling back to SHA-1 on failure.

    Raises:
        HashError: both algorithms failed. The SHA-1 error is the cause and
            the XXH32 error is available as ``primary_error``.
    """
    try:
        return xxh32_hash(file_path)
    except Exception as primary_error:
        message = f"XXHash32 failed for {file_path}: {primary_error} - falling back to SHA1"
        if notices:
            notices.notify(NoticeKind.HASH_FALLBACK, message, file_path)
        else:
            logger.warning(message)

        try:
            return sha1_hash(file_path)
        except Exception as fallback_error:
            logger.debug(f"SHA1 also failed for {file_path}: {fallback_error}")
            raise HashError(file_path, primary_error=primary_error) from fallback_error
