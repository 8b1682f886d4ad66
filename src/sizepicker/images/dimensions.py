# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Header-only image dimension sniffing for PNG, JPEG and WEBP.

Pure functions over a byte buffer with explicit offsets. Every parser returns
None for truncated, corrupt, or unrecognized input and never raises; callers
treat None as "dimensions unknown".
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SOI = b"\xff\xd8"

# SOF0..SOF15 minus DHT (C4), JPG (C8), DAC (CC)
_JPEG_SOF_MARKERS = frozenset(range(0xC0, 0xD0)) - {0xC4, 0xC8, 0xCC}
# Markers without a length field
_JPEG_STANDALONE_MARKERS = frozenset({0x01, *range(0xD0, 0xD8), 0xD8})
_JPEG_EOI = 0xD9
_JPEG_SOS = 0xDA

_VP8_START_CODE = b"\x9d\x01\x2a"
_VP8L_SIGNATURE = 0x2F


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        """Long side over short side (>= 1.0)."""
        return max(self.width, self.height) / min(self.width, self.height)


def _dimensions(width: int, height: int) -> ImageDimensions | None:
    if width <= 0 or height <= 0:
        return None
    return ImageDimensions(width=width, height=height)


def png_dimensions(data: bytes) -> ImageDimensions | None:
    """IHDR width/height: big-endian u32 at offsets 16 and 20."""
    if len(data) < 24 or not data.startswith(PNG_SIGNATURE) or data[12:16] != b"IHDR":
        return None
    width, height = struct.unpack(">II", data[16:24])
    return _dimensions(width, height)


def jpeg_dimensions(data: bytes) -> ImageDimensions | None:
    """Walk marker segments to the first Start-Of-Frame."""
    if not data.startswith(JPEG_SOI):
        return None
    i = 2
    n = len(data)
    while i + 1 < n:
        if data[i] != 0xFF:
            return None
        marker = data[i + 1]
        if marker == 0xFF:  # fill byte
            i += 1
            continue
        if marker in _JPEG_STANDALONE_MARKERS:
            i += 2
            continue
        if marker in (_JPEG_EOI, _JPEG_SOS):
            return None
        if i + 4 > n:
            return None
        (length,) = struct.unpack(">H", data[i + 2 : i + 4])
        if length < 2:
            return None
        if marker in _JPEG_SOF_MARKERS:
            # length(2) precision(1) height(2) width(2)
            if i + 9 > n:
                return None
            height, width = struct.unpack(">HH", data[i + 5 : i + 9])
            return _dimensions(width, height)
        i += 2 + length
    return None


def _vp8x(payload: bytes) -> ImageDimensions | None:
    if len(payload) < 10:
        return None
    width = int.from_bytes(payload[4:7], "little") + 1
    height = int.from_bytes(payload[7:10], "little") + 1
    return _dimensions(width, height)


def _vp8(payload: bytes) -> ImageDimensions | None:
    if len(payload) < 10 or payload[0] & 0x01 or payload[3:6] != _VP8_START_CODE:
        return None  # not a key frame
    width, height = struct.unpack("<HH", payload[6:10])
    return _dimensions(width & 0x3FFF, height & 0x3FFF)


def _vp8l(payload: bytes) -> ImageDimensions | None:
    if len(payload) < 5 or payload[0] != _VP8L_SIGNATURE:
        return None
    bits = int.from_bytes(payload[1:5], "little")
    return _dimensions((bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1)


_WEBP_CHUNK_PARSERS = {b"VP8X": _vp8x, b"VP8 ": _vp8, b"VP8L": _vp8l}


def webp_dimensions(data: bytes) -> ImageDimensions | None:
    """RIFF/WEBP container: first VP8X, VP8 or VP8L chunk wins."""
    if len(data) < 20 or data[0:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None
    offset = 12
    n = len(data)
    while offset + 8 <= n:
        fourcc = data[offset : offset + 4]
        (size,) = struct.unpack("<I", data[offset + 4 : offset + 8])
        payload = data[offset + 8 : offset + 8 + size]
        parser = _WEBP_CHUNK_PARSERS.get(fourcc)
        if parser is not None:
            return parser(payload)
        offset += 8 + size + (size & 1)  # chunks are padded to even size
    return None


def sniff_image_mime(data: bytes) -> str | None:
    if data.startswith(PNG_SIGNATURE):
        return "image/png"
    if data.startswith(JPEG_SOI):
        return "image/jpeg"
    if len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    return None


def sniff_image_dimensions(data: bytes | bytearray | memoryview | None) -> ImageDimensions | None:
    """Dimensions of a PNG/JPEG/WEBP buffer, or None when unknown."""
    if not data:
        return None
    buf = bytes(data)
    mime = sniff_image_mime(buf)
    if mime == "image/png":
        return png_dimensions(buf)
    if mime == "image/jpeg":
        return jpeg_dimensions(buf)
    if mime == "image/webp":
        return webp_dimensions(buf)
    return None
