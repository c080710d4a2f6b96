"""Mini README: FastAPI boundary between the capture client and the core.

Structure:
    * create_application - application factory wiring routes to one collection.

Routes:
    * POST /entries - photo upload plus form fields and optional GPS.
    * GET /entries, GET /entries/{id}/photo, GET /entries/{id}/upload-fields.
    * DELETE /entries - whole-collection reset.
    * GET /analytics - dashboard statistics.
    * GET /exports/{csv|kmz|zip} - export downloads.

Handlers are coroutines running on the event loop, so captures and exports
interleave between requests but never inside one; exports work on a
snapshot of the collection.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response

from ..configuration import TreeSurveySettings, get_settings
from ..entries import EntryCollection, GeoFix, SurveyForm
from ..errors import ExportFailed
from ..export import ExportFormat, export_entries
from ..logging_utils import configure_root_logger, get_logger
from ..utils.image_format import detect_photo_format

LOGGER = get_logger(__name__)


def create_application(
    collection: Optional[EntryCollection] = None,
    settings: Optional[TreeSurveySettings] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    configure_root_logger(settings.log_level)
    entries = collection if collection is not None else EntryCollection()
    form_defaults = SurveyForm(species=settings.default_species)

    app = FastAPI(title="Tree Survey Capture Service", version="0.1.0")

    def _lookup(entry_id: str):
        try:
            return entries.get(entry_id)
        except KeyError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error

    @app.post("/entries", status_code=201)
    async def create_survey_entry(
        photo: UploadFile = File(...),
        height_cm: Optional[str] = Form(None),
        planting_year: Optional[str] = Form(None),
        species: Optional[str] = Form(None),
        health_status: Optional[str] = Form(None),
        location: Optional[str] = Form(None),
        job_name: Optional[str] = Form(None),
        supervisor: Optional[str] = Form(None),
        vendor: Optional[str] = Form(None),
        team: Optional[str] = Form(None),
        latitude: Optional[float] = Form(None),
        longitude: Optional[float] = Form(None),
        accuracy_m: Optional[float] = Form(None),
    ) -> JSONResponse:
        """Create an entry from an uploaded photo and the capture form."""

        raw_photo = await photo.read()
        try:
            form = SurveyForm.from_mapping(
                {
                    "height_cm": height_cm,
                    "planting_year": planting_year,
                    "species": species,
                    "health_status": health_status,
                    "location": location,
                    "job_name": job_name,
                    "supervisor": supervisor,
                    "vendor": vendor,
                    "team": team,
                },
                defaults=form_defaults,
            )
            gps = GeoFix.from_optional(latitude, longitude, accuracy_m)
        except ValueError as error:
            raise HTTPException(status_code=422, detail=str(error)) from error

        entry = entries.capture(form, gps, raw_photo)
        LOGGER.info("Received capture %s (%s bytes)", entry.entry_id, len(raw_photo))
        payload = entry.summary()
        payload["embedding_warning"] = (
            str(entry.embedding_failure) if entry.embedding_failure else None
        )
        return JSONResponse(payload, status_code=201)

    @app.get("/entries")
    async def list_entries() -> JSONResponse:
        """Return every entry in capture order, photos excluded."""

        snapshot = entries.snapshot()
        LOGGER.debug("Returning %s entries", len(snapshot))
        return JSONResponse({"entries": [entry.summary() for entry in snapshot]})

    @app.delete("/entries")
    async def reset_entries() -> JSONResponse:
        """Remove all local entries."""

        removed = entries.reset()
        return JSONResponse({"removed": removed})

    @app.get("/entries/{entry_id}/photo")
    async def entry_photo(entry_id: str) -> Response:
        """Return the stored (annotated) photo."""

        entry = _lookup(entry_id)
        photo_format = detect_photo_format(entry.photo)
        if photo_format is None:
            raise HTTPException(status_code=404, detail=f"Entry {entry_id} has no readable photo")
        return Response(content=entry.photo, media_type=photo_format.media_type)

    @app.get("/entries/{entry_id}/upload-fields")
    async def entry_upload_fields(entry_id: str) -> JSONResponse:
        """Return the flat field map an upload transport forwards."""

        return JSONResponse(_lookup(entry_id).as_upload_fields())

    @app.get("/analytics")
    async def analytics() -> JSONResponse:
        """Return dashboard statistics for the current entries."""

        metrics = entries.summarise_metrics()
        LOGGER.debug(
            "Analytics -> entries: %s geotagged: %s area_ha: %s",
            metrics["total_entries"],
            metrics["geotagged_entries"],
            metrics["area_hectares"],
        )
        return JSONResponse(metrics)

    @app.get("/exports/{export_format}")
    async def export(export_format: str) -> Response:
        """Download the entries as CSV, KMZ or a photo archive."""

        try:
            selected = ExportFormat.from_str(export_format)
        except ValueError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error
        try:
            artifact = export_entries(
                selected,
                entries.snapshot(),
                basename=settings.export_basename,
                include_photos=settings.geo_container_embed_photos,
            )
        except ExportFailed as error:
            raise HTTPException(status_code=409, detail=str(error)) from error

        headers = {"Content-Disposition": f'attachment; filename="{artifact.filename}"'}
        if artifact.partial:
            headers["X-Export-Warnings"] = "; ".join(str(warning) for warning in artifact.warnings)
        return Response(content=artifact.payload, media_type=artifact.content_type, headers=headers)

    return app
