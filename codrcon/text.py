"""Text helpers shared by the accumulator and the parsers."""

import re

OOB_MARKER = "\xff\xff\xff\xff"
OOB_MARKER_BYTES = b"\xff\xff\xff\xff"
PRINT_BANNER = "print\n"

_COLOR_CODE = re.compile(r"\^[0-9A-Za-z]")


def decode_payload(data: bytes) -> str:
    """Decode raw datagram bytes; latin-1 keeps 0xFF bytes as '\\xff'."""
    return data.decode("latin-1")


def strip_color_codes(text: str) -> str:
    """Remove ^N style color codes (^0-^9 and the ^a-^z variants)."""
    if not text:
        return text
    return _COLOR_CODE.sub("", text)


def normalize_response(text: str) -> str:
    """
    Strip OOB framing from a reassembled response.

    Leading sentinel / "print" banners are removed repeatedly since a
    multi-datagram reply carries one per fragment, and embedded ones
    between fragments are collapsed to a plain newline.
    """
    if not text:
        return text
    text = text.replace("\r\n", "\n")
    while True:
        changed = False
        if text.startswith(OOB_MARKER):
            text = text[len(OOB_MARKER):]
            changed = True
        if text.startswith(PRINT_BANNER):
            text = text[len(PRINT_BANNER):]
            changed = True
        if not changed:
            break

    text = text.replace("\n" + OOB_MARKER, "\n")
    text = text.replace("\n" + PRINT_BANNER, "\n")
    return text.strip()


def split_lines(text: str) -> list[str]:
    """Split into stripped, non-empty lines."""
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]


def build_packet(payload: str) -> bytes:
    """Frame a command as an OOB datagram: 0xFFFFFFFF + payload + newline."""
    return OOB_MARKER_BYTES + payload.encode("utf-8") + b"\n"
