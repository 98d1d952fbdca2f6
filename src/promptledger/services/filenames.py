"""Collision-resistant storage filenames for uploaded images."""

import re
import secrets
import string

SUFFIX_LENGTH = 10
SUFFIX_ALPHABET = string.ascii_letters + string.digits

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename_part(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", value)


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Return a random alphanumeric string of ``length`` characters."""
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def split_client_filename(filename: str) -> tuple[str, str]:
    """Split a client-supplied filename into (stem, extension).

    Directory components (``/`` or ``\\`` separated) are dropped. The extension
    is whatever follows the last dot, without the dot; it is empty when there
    is no dot.

    Example:
        >>> split_client_filename("../holiday/photo.final.JPG")
        ('photo.final', 'JPG')
        >>> split_client_filename("README")
        ('README', '')
    """
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, extension = base.rpartition(".")
    if not dot:
        return base, ""
    return stem, extension


def build_storage_filename(original_filename: str) -> str:
    """Derive the on-disk filename for an upload.

    The result is ``<sanitized stem>_<10 random alphanumerics>[.<sanitized ext>]``
    and contains only ``[A-Za-z0-9._-]``. Uploads sharing a display name get
    distinct storage names.

    Args:
        original_filename: Filename as declared by the client

    Returns:
        Safe, unique-with-overwhelming-probability storage filename
    """
    stem, extension = split_client_filename(original_filename)
    filename = f"{sanitize_filename_part(stem)}_{random_suffix()}"
    if extension:
        filename = f"{filename}.{sanitize_filename_part(extension)}"
    return filename
