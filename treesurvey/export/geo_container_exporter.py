"""Mini README: Export geotagged survey entries as KMZ for Google Earth.

Structure:
    * PlacemarkStyle / style_for - one fixed icon style per health state.
    * format_coordinates - KML ``lon,lat,alt`` triple.
    * build_kml_document - the ``doc.kml`` markup, with an extent summary
      (area, density, mean spacing) on the document.
    * to_geo_container - zipped KMZ bytes.
    * export_geo_container - wraps the bytes into an ``ExportArtifact``.

Only entries with a GPS fix become placemarks; the rest stay in the CSV and
photo archive exports. KML orders coordinates longitude first, the reverse
of ``GeoFix``.
"""

from __future__ import annotations

import html
import io
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Sequence

from ..entries.model import GeoFix, HealthStatus, SurveyEntry
from ..logging_utils import get_logger
from ..utils.geo_math import (
    average_pairwise_distance,
    bounding_box_area_hectares,
    planting_density,
)
from .artifacts import (
    DEFAULT_BASENAME,
    KMZ_CONTENT_TYPE,
    STAMP_FORMAT,
    ExportArtifact,
    export_stamp,
    photo_member_names,
    suggested_filename,
    zip_entry_info,
)

LOGGER = get_logger(__name__)

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
DOCUMENT_NAME = "doc.kml"
PHOTO_DIRECTORY = "files/"
ICON_HREF = "http://maps.google.com/mapfiles/kml/paddle/wht-circle.png"


@dataclass(frozen=True, slots=True)
class PlacemarkStyle:
    """KML style shared by all placemarks of one health state."""

    style_id: str
    color: str  # aabbggrr
    label: str


def style_for(status: HealthStatus) -> PlacemarkStyle:
    """Return the style for a health state."""

    if status is HealthStatus.HEALTHY:
        return PlacemarkStyle(style_id="health-healthy", color="ff81b910", label="Healthy")
    if status is HealthStatus.STRUGGLING:
        return PlacemarkStyle(style_id="health-struggling", color="ff0b9ef5", label="Struggling")
    if status is HealthStatus.DEAD:
        return PlacemarkStyle(style_id="health-dead", color="ff4444ef", label="Dead")
    raise ValueError(f"No placemark style for health status {status!r}")


def format_coordinates(fix: GeoFix) -> str:
    """KML point coordinates: longitude, latitude, altitude."""

    return f"{fix.longitude:.8f},{fix.latitude:.8f},0"


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


def _append_style(document: ET.Element, style: PlacemarkStyle) -> None:
    element = ET.SubElement(document, "Style", id=style.style_id)
    icon_style = ET.SubElement(element, "IconStyle")
    _text(icon_style, "color", style.color)
    _text(icon_style, "scale", "1.1")
    icon = ET.SubElement(icon_style, "Icon")
    _text(icon, "href", ICON_HREF)
    label_style = ET.SubElement(element, "LabelStyle")
    _text(label_style, "scale", "0.8")


def _optional(value: Optional[float], unit: str, digits: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{digits}f} {unit}"


def _survey_summary(fixes: Sequence[GeoFix]) -> str:
    """One-line extent summary shown on the document itself."""

    area = bounding_box_area_hectares(fixes)
    return (
        f"{len(fixes)} geotagged trees; "
        f"area {_optional(area, 'ha', 4)}; "
        f"density {_optional(planting_density(len(fixes), area), 'trees/ha', 1)}; "
        f"mean spacing {_optional(average_pairwise_distance(fixes), 'm', 1)}"
    )


def _placemark_description(entry: SurveyEntry, photo_member: Optional[str]) -> str:
    rows = [
        ("ID", entry.entry_id),
        ("Captured", entry.captured_at.isoformat()),
        ("Species", entry.species),
        ("Height", f"{entry.height_cm} cm"),
        ("Health", entry.health_status.value),
        ("Planting year", str(entry.planting_year)),
        ("Location", entry.location),
        ("Job", entry.job_name),
        ("Supervisor", entry.supervisor),
        ("Vendor", entry.vendor),
        ("Team", entry.team),
    ]
    lines = [
        f"<b>{html.escape(label)}:</b> {html.escape(value)}<br/>" for label, value in rows
    ]
    if photo_member:
        lines.insert(0, f'<img src="{html.escape(photo_member)}" width="240"/><br/>')
    return "\n".join(lines)


def _append_placemark(
    document: ET.Element, entry: SurveyEntry, fix: GeoFix, photo_member: Optional[str]
) -> None:
    placemark = ET.SubElement(document, "Placemark")
    _text(placemark, "name", f"{entry.species} ({entry.height_cm} cm)")
    _text(placemark, "description", _placemark_description(entry, photo_member))
    timestamp = ET.SubElement(placemark, "TimeStamp")
    _text(timestamp, "when", entry.captured_at.isoformat())
    _text(placemark, "styleUrl", f"#{style_for(entry.health_status).style_id}")

    extended = ET.SubElement(placemark, "ExtendedData")
    for name, value in (
        ("entry_id", entry.entry_id),
        ("height_cm", str(entry.height_cm)),
        ("health", entry.health_status.value),
        ("planting_year", str(entry.planting_year)),
        ("job", entry.job_name),
        ("supervisor", entry.supervisor),
        ("vendor", entry.vendor),
        ("team", entry.team),
        ("accuracy_m", f"{fix.accuracy_m:g}"),
    ):
        data = ET.SubElement(extended, "Data", name=name)
        _text(data, "value", value)

    point = ET.SubElement(placemark, "Point")
    _text(point, "coordinates", format_coordinates(fix))


def build_kml_document(
    entries: Sequence[SurveyEntry],
    *,
    generated_at: datetime,
    photo_members: Optional[Mapping[int, str]] = None,
) -> bytes:
    """Render the KML document for the geotagged entries.

    ``photo_members`` maps entry positions to archive paths of their photos.
    """

    photo_members = photo_members or {}
    kml = ET.Element("kml", xmlns=KML_NAMESPACE)
    document = ET.SubElement(kml, "Document")
    _text(document, "name", f"Tree survey {generated_at.strftime(STAMP_FORMAT)}")
    _text(document, "open", "1")
    fixes = [entry.gps for entry in entries if entry.gps is not None]
    _text(document, "description", _survey_summary(fixes))
    for status in HealthStatus:
        _append_style(document, style_for(status))

    for position, entry in enumerate(entries):
        if entry.gps is None:
            continue
        _append_placemark(document, entry, entry.gps, photo_members.get(position))

    ET.indent(kml)
    LOGGER.debug("Built KML with %s placemarks from %s entries", len(fixes), len(entries))
    return ET.tostring(kml, encoding="utf-8", xml_declaration=True)


def to_geo_container(
    entries: Iterable[SurveyEntry],
    *,
    generated_at: Optional[datetime] = None,
    include_photos: bool = False,
) -> bytes:
    """Serialise entries to KMZ: ``doc.kml`` first, then any referenced photos."""

    snapshot = tuple(entries)
    stamp = export_stamp(generated_at)

    photo_members: Dict[int, str] = {}
    if include_photos:
        geotagged = {
            position: name
            for position, name in photo_member_names(snapshot, prefix=PHOTO_DIRECTORY).items()
            if snapshot[position].gps is not None
        }
        photo_members.update(geotagged)

    document = build_kml_document(snapshot, generated_at=stamp, photo_members=photo_members)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(zip_entry_info(DOCUMENT_NAME, stamp), document)
        for position, name in photo_members.items():
            entry = snapshot[position]
            archive.writestr(zip_entry_info(name, entry.captured_at), entry.photo)
    return buffer.getvalue()


def export_geo_container(
    entries: Iterable[SurveyEntry],
    *,
    generated_at: Optional[datetime] = None,
    basename: str = DEFAULT_BASENAME,
    include_photos: bool = False,
) -> ExportArtifact:
    """Produce the KMZ artefact with its suggested file name."""

    snapshot = tuple(entries)
    stamp = export_stamp(generated_at)
    payload = to_geo_container(snapshot, generated_at=stamp, include_photos=include_photos)
    LOGGER.info(
        "Exported %s of %s entries to KMZ (%s bytes)",
        sum(1 for entry in snapshot if entry.gps is not None),
        len(snapshot),
        len(payload),
    )
    return ExportArtifact(
        filename=suggested_filename(basename, "kmz", stamp),
        content_type=KMZ_CONTENT_TYPE,
        payload=payload,
    )
