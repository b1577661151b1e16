# core/text_codec.py
import base64
import binascii
import re

from util.errors import Base64AlphabetError, Base64LengthError, Base64PaddingError

_ALPHABET = re.compile(r"[A-Za-z0-9+/]*")
_WHITESPACE = re.compile(r"[ \t\r\n]+")


def encode_text(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_text(text: str) -> bytes:
    """
    Strict standard-alphabet base64. Whitespace (line wrapping) is ignored;
    anything else out of place is rejected rather than skipped.
    """
    s = _WHITESPACE.sub("", text)
    if len(s) % 4 != 0:
        raise Base64LengthError("invalid base64 length")
    body = s.rstrip("=")
    if len(s) - len(body) > 2 or "=" in body:
        raise Base64PaddingError("invalid base64 padding")
    if not _ALPHABET.fullmatch(body):
        raise Base64AlphabetError("invalid base64 character")
    try:
        return base64.b64decode(s, validate=True)
    except binascii.Error as e:
        raise Base64PaddingError(f"invalid base64 padding: {e}") from e
