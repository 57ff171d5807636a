import secrets
import string

_BASE62_ALPHABET = string.digits + string.ascii_letters

DEFAULT_CODE_LENGTH = 8


def _base62_code(length: int) -> str:
    return "".join(secrets.choice(_BASE62_ALPHABET) for _ in range(length))


def generate_short_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """
    Random base62 token. 8 characters gives ~47 bits of entropy; the store's
    conditional insert catches the rare collision.
    """
    if length < 1:
        raise ValueError("length must be positive")
    return _base62_code(length)
