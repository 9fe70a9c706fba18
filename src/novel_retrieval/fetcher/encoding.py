"""Character-encoding detection and decoding for fetched pages."""

import codecs
import logging
import re

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(
    rb"<meta[^>]+charset\s*=\s*[\"']?\s*([\w.:-]+)", re.IGNORECASE
)
_SNIFF_BYTES = 4096

# Legacy Chinese encodings are widened to their superset so that characters
# outside the declared charset (common on these sites) still decode.
_WIDER_ENCODINGS = {
    "gb2312": "gb18030",
    "gbk": "gb18030",
    "big5": "big5hkscs",
}


def normalize_encoding_name(name: str | None) -> str | None:
    """Return the canonical codec name for ``name`` or None if unknown."""
    if not name:
        return None
    try:
        canonical = codecs.lookup(name.strip().lower()).name
    except LookupError:
        return None
    return _WIDER_ENCODINGS.get(canonical, canonical)


def header_encoding(content_type: str | None) -> str | None:
    """Charset declared in a Content-Type header."""
    if not content_type:
        return None
    match = _HEADER_CHARSET_RE.search(content_type)
    return normalize_encoding_name(match.group(1)) if match else None


def meta_encoding(content: bytes) -> str | None:
    """Charset declared by a ``<meta>`` tag near the top of the document."""
    match = _META_CHARSET_RE.search(content[:_SNIFF_BYTES])
    if not match:
        return None
    return normalize_encoding_name(match.group(1).decode("ascii", "ignore"))


def sniff_encoding(content: bytes) -> str | None:
    """Guess the encoding from the bytes themselves."""
    best = from_bytes(content).best()
    return normalize_encoding_name(best.encoding) if best else None


def candidate_encodings(
    content: bytes, content_type: str | None = None, hint: str | None = None
) -> list[str]:
    """Ordered, de-duplicated list of encodings worth trying.

    Detection is consulted only when the page declares nothing and the site
    gives no hint: on short pages it confuses GBK with other double-byte
    encodings that decode just as cleanly.
    """
    candidates: list[str | None] = []
    if content.startswith(codecs.BOM_UTF8):
        candidates.append("utf-8-sig")
    candidates.append(header_encoding(content_type))
    candidates.append(meta_encoding(content))
    candidates.append(normalize_encoding_name(hint))
    if not any(candidates):
        candidates.append(sniff_encoding(content))
    candidates.append("utf-8")

    ordered: list[str] = []
    for name in candidates:
        if name and name not in ordered:
            ordered.append(name)
    return ordered


def decode_html(
    content: bytes, content_type: str | None = None, hint: str | None = None
) -> tuple[str, str]:
    """Decode a response body to text.

    Candidates are tried strictly in order: byte-order mark, HTTP header,
    ``<meta>`` declaration, the caller's hint, detection (only when none of
    those exist), then UTF-8. A declaration that does not decode cleanly is
    skipped rather than trusted.

    Returns:
        The decoded text with normalized newlines and the encoding used.

    Raises:
        UnicodeDecodeError: No candidate decodes the content.
    """
    if not content:
        return "", "utf-8"

    last_error: UnicodeDecodeError | None = None
    for encoding in candidate_encodings(content, content_type, hint):
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError as e:
            logger.debug("Encoding %s rejected: %s", encoding, e)
            last_error = e
            continue
        return text.replace("\r\n", "\n").replace("\r", "\n"), encoding

    assert last_error is not None
    raise last_error
