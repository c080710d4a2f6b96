"""Mini README: Embed survey metadata into JPEG photos without re-encoding.

Structure:
    * JpegSegment - one marker segment (marker byte plus payload).
    * EmbeddingResult - photo bytes plus the typed failure, if any.
    * split_segments / join_segments - lossless JPEG container walk.
    * build_exif_payload - big-endian TIFF block with IFD0 and GPS IFD.
    * format_description / parse_description - delimited description text.
    * embed_metadata - public entry point; never raises.

Only the metadata segments before the first scan are touched. Everything from
the SOS marker onwards (the compressed pixels) is copied verbatim, and every
segment length is recomputed from its payload when the file is reassembled.
An existing ``Exif`` APP1 segment is replaced in place, otherwise the new one
goes directly after SOI, so embedding the same entry twice yields identical
bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..errors import EmbeddingFailed, UnsupportedContainer
from ..logging_utils import get_logger

if TYPE_CHECKING:
    from ..entries.model import GeoFix, SurveyEntry

LOGGER = get_logger(__name__)

JPEG_SOI = b"\xff\xd8"
EXIF_HEADER = b"Exif\x00\x00"
MARKER_APP1 = 0xE1
MARKER_SOS = 0xDA
MARKER_EOI = 0xD9
STANDALONE_MARKERS = frozenset([0x01, *range(0xD0, 0xD8)])
MAX_SEGMENT_PAYLOAD = 0xFFFF - 2

SOFTWARE_NAME = "treesurvey"
DESCRIPTION_DELIMITER = "|"
SECONDS_DENOMINATOR = 10_000
ACCURACY_DENOMINATOR = 100
UINT32_MAX = 0xFFFFFFFF

# TIFF field types
TYPE_BYTE = 1
TYPE_ASCII = 2
TYPE_LONG = 4
TYPE_RATIONAL = 5

TAG_IMAGE_DESCRIPTION = 0x010E
TAG_SOFTWARE = 0x0131
TAG_DATETIME = 0x0132
TAG_ARTIST = 0x013B
TAG_GPS_IFD = 0x8825

TAG_GPS_VERSION = 0x0000
TAG_GPS_LATITUDE_REF = 0x0001
TAG_GPS_LATITUDE = 0x0002
TAG_GPS_LONGITUDE_REF = 0x0003
TAG_GPS_LONGITUDE = 0x0004
TAG_GPS_TIMESTAMP = 0x0007
TAG_GPS_MAP_DATUM = 0x0012
TAG_GPS_DATESTAMP = 0x001D
TAG_GPS_H_POSITIONING_ERROR = 0x001F

Rational = Tuple[int, int]
PhotoBytes = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True, slots=True)
class JpegSegment:
    """Marker segment between SOI and the first scan."""

    marker: int
    payload: bytes

    @property
    def is_exif(self) -> bool:
        return self.marker == MARKER_APP1 and self.payload.startswith(EXIF_HEADER)

    def encode(self) -> bytes:
        """Serialise with a length field derived from the payload."""

        if len(self.payload) > MAX_SEGMENT_PAYLOAD:
            raise EmbeddingFailed(
                f"Segment 0xFF{self.marker:02X} payload of {len(self.payload)} bytes exceeds "
                f"the {MAX_SEGMENT_PAYLOAD} byte limit"
            )
        return struct.pack(">BBH", 0xFF, self.marker, len(self.payload) + 2) + self.payload


@dataclass(frozen=True, slots=True)
class EmbeddingResult:
    """Outcome of one embedding attempt."""

    photo: Optional[bytes]
    failure: Optional[EmbeddingFailed] = None

    @property
    def embedded(self) -> bool:
        return self.failure is None


def split_segments(data: bytes) -> Tuple[List[JpegSegment], bytes]:
    """Split a JPEG into its header segments and the untouched scan tail.

    The tail starts at the first SOS (or a premature EOI) marker and is
    returned byte for byte, fill bytes included.
    """

    if not data.startswith(JPEG_SOI):
        raise UnsupportedContainer("Payload does not start with a JPEG SOI marker")

    segments: List[JpegSegment] = []
    size = len(data)
    offset = len(JPEG_SOI)
    while True:
        if offset >= size:
            raise EmbeddingFailed(f"JPEG ended at offset {offset} before any image data")
        if data[offset] != 0xFF:
            raise EmbeddingFailed(
                f"Expected a marker at offset {offset}, found 0x{data[offset]:02X}"
            )
        marker_offset = offset
        while offset < size and data[offset] == 0xFF:
            offset += 1
        if offset >= size:
            raise EmbeddingFailed(f"Truncated marker at offset {marker_offset}")
        marker = data[offset]
        offset += 1

        if marker in (MARKER_SOS, MARKER_EOI):
            return segments, data[marker_offset:]
        if marker == 0x00 or marker in STANDALONE_MARKERS:
            raise EmbeddingFailed(
                f"Unexpected marker 0xFF{marker:02X} at offset {marker_offset} before image data"
            )
        if offset + 2 > size:
            raise EmbeddingFailed(f"Missing length for marker 0xFF{marker:02X} at offset {marker_offset}")
        (length,) = struct.unpack_from(">H", data, offset)
        if length < 2 or offset + length > size:
            raise EmbeddingFailed(
                f"Segment 0xFF{marker:02X} at offset {marker_offset} declares length {length} "
                f"beyond the end of the payload"
            )
        segments.append(JpegSegment(marker=marker, payload=bytes(data[offset + 2 : offset + length])))
        offset += length


def join_segments(segments: Iterable[JpegSegment], tail: bytes) -> bytes:
    """Reassemble a JPEG from header segments and the scan tail."""

    return JPEG_SOI + b"".join(segment.encode() for segment in segments) + tail


def _escape(value: str) -> str:
    cleaned = value.replace("\x00", "")
    return cleaned.replace("\\", "\\\\").replace(DESCRIPTION_DELIMITER, "\\" + DESCRIPTION_DELIMITER)


def format_description(entry: "SurveyEntry") -> str:
    """Render the human-readable ``Key=value|Key=value`` description string."""

    pairs = (
        ("Species", entry.species),
        ("Height", f"{entry.height_cm} cm"),
        ("Health", entry.health_status.value),
        ("Supervisor", entry.supervisor),
        ("Vendor", entry.vendor),
        ("Team", entry.team),
    )
    return DESCRIPTION_DELIMITER.join(f"{key}={_escape(value)}" for key, value in pairs)


def parse_description(text: str) -> Dict[str, str]:
    """Split a description produced by ``format_description`` back into fields."""

    parts: List[str] = []
    current: List[str] = []
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == DESCRIPTION_DELIMITER:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))

    parsed: Dict[str, str] = {}
    for part in parts:
        key, separator, value = part.partition("=")
        if separator:
            parsed[key] = value
    return parsed


def degrees_to_dms(value: float) -> Tuple[Rational, Rational, Rational]:
    """Convert decimal degrees to unsigned degree/minute/second rationals."""

    units = round(abs(value) * 3600 * SECONDS_DENOMINATOR)
    degrees, remainder = divmod(units, 3600 * SECONDS_DENOMINATOR)
    minutes, seconds = divmod(remainder, 60 * SECONDS_DENOMINATOR)
    return (degrees, 1), (minutes, 1), (seconds, SECONDS_DENOMINATOR)


def dms_to_degrees(dms: Sequence[Rational], reference: str) -> float:
    """Inverse of ``degrees_to_dms`` applying the hemisphere reference."""

    degrees, minutes, seconds = (numerator / denominator for numerator, denominator in dms)
    value = degrees + minutes / 60 + seconds / 3600
    return -value if reference.upper() in {"S", "W"} else value


@dataclass(frozen=True, slots=True)
class _IfdField:
    tag: int
    field_type: int
    count: int
    value: bytes


def _ascii(tag: int, text: str) -> _IfdField:
    raw = text.encode("utf-8") + b"\x00"
    return _IfdField(tag, TYPE_ASCII, len(raw), raw)


def _long(tag: int, value: int) -> _IfdField:
    return _IfdField(tag, TYPE_LONG, 1, struct.pack(">I", value))


def _rationals(tag: int, values: Sequence[Rational]) -> _IfdField:
    raw = b"".join(struct.pack(">II", numerator, denominator) for numerator, denominator in values)
    return _IfdField(tag, TYPE_RATIONAL, len(values), raw)


def _pack_ifd(ifd_fields: Sequence[_IfdField], offset: int) -> bytes:
    """Pack one IFD located at ``offset`` (relative to the TIFF header).

    Values longer than four bytes go into a data area right after the entry
    table, word aligned. The next-IFD link is always zero.
    """

    ordered = sorted(ifd_fields, key=lambda item: item.tag)
    data_offset = offset + 2 + 12 * len(ordered) + 4
    table = [struct.pack(">H", len(ordered))]
    data = bytearray()
    for item in ordered:
        if len(item.value) <= 4:
            inline = item.value.ljust(4, b"\x00")
        else:
            inline = struct.pack(">I", data_offset + len(data))
            data += item.value
            if len(data) % 2:
                data += b"\x00"
        table.append(struct.pack(">HHI", item.tag, item.field_type, item.count) + inline)
    table.append(struct.pack(">I", 0))
    return b"".join(table) + bytes(data)


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _gps_fields(gps: "GeoFix", captured_at: datetime) -> List[_IfdField]:
    stamp = _utc(captured_at)
    accuracy = min(round(gps.accuracy_m * ACCURACY_DENOMINATOR), UINT32_MAX)
    return [
        _IfdField(TAG_GPS_VERSION, TYPE_BYTE, 4, bytes([2, 3, 0, 0])),
        _ascii(TAG_GPS_LATITUDE_REF, "N" if gps.latitude >= 0 else "S"),
        _rationals(TAG_GPS_LATITUDE, degrees_to_dms(gps.latitude)),
        _ascii(TAG_GPS_LONGITUDE_REF, "E" if gps.longitude >= 0 else "W"),
        _rationals(TAG_GPS_LONGITUDE, degrees_to_dms(gps.longitude)),
        _rationals(TAG_GPS_TIMESTAMP, ((stamp.hour, 1), (stamp.minute, 1), (stamp.second, 1))),
        _ascii(TAG_GPS_MAP_DATUM, "WGS-84"),
        _ascii(TAG_GPS_DATESTAMP, stamp.strftime("%Y:%m:%d")),
        _rationals(TAG_GPS_H_POSITIONING_ERROR, ((accuracy, ACCURACY_DENOMINATOR),)),
    ]


def build_exif_payload(entry: "SurveyEntry") -> bytes:
    """Build the APP1 payload (``Exif\\0\\0`` plus a big-endian TIFF block)."""

    ifd0_fields = [
        _ascii(TAG_IMAGE_DESCRIPTION, format_description(entry)),
        _ascii(TAG_SOFTWARE, SOFTWARE_NAME),
        _ascii(TAG_DATETIME, entry.captured_at.strftime("%Y:%m:%d %H:%M:%S")),
    ]
    supervisor = entry.supervisor.replace("\x00", "")
    if supervisor:
        ifd0_fields.append(_ascii(TAG_ARTIST, supervisor))

    ifd0_offset = 8
    gps_ifd = b""
    if entry.gps is not None:
        # The pointer is a fixed-size LONG, so a placeholder gives the final IFD0 size.
        ifd0_size = len(_pack_ifd(ifd0_fields + [_long(TAG_GPS_IFD, 0)], ifd0_offset))
        gps_offset = ifd0_offset + ifd0_size
        ifd0_fields.append(_long(TAG_GPS_IFD, gps_offset))
        gps_ifd = _pack_ifd(_gps_fields(entry.gps, entry.captured_at), gps_offset)

    header = b"MM" + struct.pack(">HI", 42, ifd0_offset)
    return EXIF_HEADER + header + _pack_ifd(ifd0_fields, ifd0_offset) + gps_ifd


def embed_metadata(photo: Optional[PhotoBytes], entry: "SurveyEntry") -> EmbeddingResult:
    """Return a copy of ``photo`` carrying the entry's EXIF block.

    Failures are reported through ``EmbeddingResult.failure`` and the photo
    comes back exactly as supplied.
    """

    if photo is None:
        failure = UnsupportedContainer("No photo payload was captured")
        LOGGER.warning("Metadata embedding skipped for entry %s: %s", entry.entry_id, failure)
        return EmbeddingResult(photo=None, failure=failure)

    original = bytes(photo)
    try:
        segments, tail = split_segments(original)
        replacement = JpegSegment(marker=MARKER_APP1, payload=build_exif_payload(entry))
        existing = next((index for index, segment in enumerate(segments) if segment.is_exif), None)
        if existing is None:
            segments.insert(0, replacement)
        else:
            segments[existing] = replacement
        annotated = join_segments(segments, tail)
    except EmbeddingFailed as failure:
        LOGGER.warning("Metadata embedding failed for entry %s: %s", entry.entry_id, failure)
        return EmbeddingResult(photo=original, failure=failure)
    except (struct.error, ValueError, OverflowError) as error:
        failure = EmbeddingFailed(f"Could not encode metadata: {error}")
        LOGGER.warning("Metadata embedding failed for entry %s: %s", entry.entry_id, failure)
        return EmbeddingResult(photo=original, failure=failure)

    LOGGER.debug(
        "Embedded metadata into entry %s (%s -> %s bytes, replaced=%s)",
        entry.entry_id,
        len(original),
        len(annotated),
        existing is not None,
    )
    return EmbeddingResult(photo=annotated)
