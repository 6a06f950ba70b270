"""
FastAPI application for the Contact Merger.

Provides REST endpoints for:
- Configuration management (global config and merge profiles)
- Merging JSON records or uploaded files
- Preview and validation
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.aggregator import unique_elements
from ..core.config_loader import ConfigLoader
from ..core.config_models import NULL_ARGUMENT_MESSAGE, MergeProfile, Selectors
from ..core.merge_engine import MergeEngine
from ..io.file_reader import FileReader
from ..io.file_writer import FileWriter
from ..io.profile_detector import ProfileDetector


class MergeRequest(BaseModel):
    """Request body for merging inline records."""

    records: list[dict[str, str | None]] = Field(..., description="Input rows")
    selectors: Selectors = Field(..., description="Field selectors")

    @field_validator("records", "selectors", mode="before")
    @classmethod
    def reject_null(cls, v: Any, info) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name}: {NULL_ARGUMENT_MESSAGE}")
        return v


def create_app(config_dir: str | Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Contact Merger",
        description="Group CSV contact rows into merged, deduplicated contacts",
        version="1.0.0",
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    config_loader = ConfigLoader(config_dir)
    file_reader = FileReader()

    app.state.config_loader = config_loader
    app.state.file_reader = file_reader

    def require_profile(name: str) -> MergeProfile:
        try:
            profile = config_loader.get_profile(name)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid profile '{name}': {e}")
        if not profile:
            raise HTTPException(status_code=404, detail=f"Profile '{name}' not found")
        return profile

    async def read_upload(file: UploadFile):
        content = await file.read()
        try:
            return file_reader.read_file(BytesIO(content), filename=file.filename)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    # ==========================================================================
    # HEALTH CHECK
    # ==========================================================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": "1.0.0"}

    # ==========================================================================
    # GLOBAL CONFIG ENDPOINTS
    # ==========================================================================

    @app.get("/api/config/global")
    async def get_global_config() -> dict:
        """Get global configuration."""
        return config_loader.global_config.model_dump(mode="json")

    @app.put("/api/config/global")
    async def update_global_config(updates: dict[str, Any]) -> dict:
        """Update global configuration."""
        try:
            new_config = config_loader.update_global_config(updates)
        except (ValidationError, TypeError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "config": new_config.model_dump(mode="json")}

    # ==========================================================================
    # PROFILE ENDPOINTS
    # ==========================================================================

    @app.get("/api/config/profiles")
    async def list_profiles() -> dict:
        """List all available profiles."""
        profiles = config_loader.load_all_profiles()
        return {
            "profiles": [
                {
                    "name": config.profile.name,
                    "enabled": config.profile.enabled,
                    "description": config.profile.description,
                    "group_by_field": config.selectors.group_by_field,
                }
                for config in profiles.values()
            ]
        }

    @app.get("/api/config/profiles/{profile_name}")
    async def get_profile(profile_name: str) -> dict:
        """Get configuration for a specific profile."""
        return require_profile(profile_name).model_dump(mode="json")

    @app.put("/api/config/profiles/{profile_name}")
    async def update_profile(profile_name: str, config_data: dict[str, Any]) -> dict:
        """Update configuration for a profile."""
        try:
            config = MergeProfile(**config_data)
        except (ValidationError, TypeError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        config_loader.save_profile(config)
        return {"success": True, "profile": config.profile.name}

    @app.post("/api/config/profiles")
    async def create_profile(config_data: dict[str, Any]) -> dict:
        """Create a new profile configuration."""
        try:
            config = MergeProfile(**config_data)
        except (ValidationError, TypeError) as e:
            raise HTTPException(status_code=400, detail=str(e))

        if config_loader.get_profile(config.profile.name):
            raise HTTPException(
                status_code=409, detail=f"Profile '{config.profile.name}' already exists"
            )

        config_loader.save_profile(config)
        return {"success": True, "profile": config.profile.name}

    @app.delete("/api/config/profiles/{profile_name}")
    async def delete_profile(profile_name: str) -> dict:
        """Delete a profile configuration."""
        if config_loader.delete_profile(profile_name):
            return {"success": True, "deleted": profile_name}
        raise HTTPException(status_code=404, detail=f"Profile '{profile_name}' not found")

    # ==========================================================================
    # MERGE ENDPOINTS
    # ==========================================================================

    @app.post("/api/merge")
    async def merge_records(request: MergeRequest) -> dict:
        """Merge inline records."""
        engine = MergeEngine(config_loader.global_config)
        result, proc_result = engine.process(request.records, request.selectors)
        return {
            "result": FileWriter.to_payload(result),
            "report": proc_result.to_dict(),
        }

    @app.post("/api/merge/detect-profile")
    async def detect_profile(file: UploadFile = File(...)) -> dict:
        """Detect profile from uploaded filename."""
        detector = ProfileDetector(config_loader.load_all_profiles())
        return {
            "filename": file.filename,
            "detected_profile": detector.detect(file.filename or ""),
            "available_profiles": detector.list_enabled_profiles(),
        }

    @app.post("/api/merge/preview")
    async def preview_file(
        file: UploadFile = File(...),
        max_rows: int = Form(default=10),
    ) -> dict:
        """Preview uploaded file without merging."""
        content = await file.read()
        try:
            preview = file_reader.preview_file(
                BytesIO(content), filename=file.filename, max_rows=max_rows
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        detector = ProfileDetector(config_loader.load_all_profiles())
        preview["detected_profile"] = detector.detect(file.filename or "")
        return preview

    @app.post("/api/merge/validate")
    async def validate_file(
        file: UploadFile = File(...),
        profile: str = Form(...),
    ) -> dict:
        """Report selector fields missing from the uploaded file."""
        merge_profile = require_profile(profile)
        results = await read_upload(file)

        if not results:
            return {"valid": False, "warnings": ["No data found in file"]}

        sheets = []
        warnings = []
        for result in results:
            sheet_warnings = MergeEngine.check_columns(
                result.columns, merge_profile.selectors
            )
            sheets.append({
                "sheet_name": result.sheet_name,
                "row_count": result.row_count,
                "columns_found": result.columns,
                "warnings": sheet_warnings,
            })
            if result.sheet_name:
                sheet_warnings = [f"{result.sheet_name}: {w}" for w in sheet_warnings]
            warnings.extend(sheet_warnings)

        return {
            "valid": len(warnings) == 0,
            "warnings": warnings,
            "row_count": sum(result.row_count for result in results),
            "columns_found": unique_elements(
                column for result in results for column in result.columns
            ),
            "sheets": sheets,
        }

    @app.post("/api/merge/file")
    async def merge_file(
        file: UploadFile = File(...),
        profile: str = Form(...),
    ) -> dict:
        """Merge an uploaded file with a stored profile."""
        merge_profile = require_profile(profile)
        results = await read_upload(file)

        records = [record for r in results for record in r.records]
        engine = MergeEngine(config_loader.global_config)
        result, proc_result = engine.process(
            records, merge_profile, source_file=file.filename
        )
        return {
            "result": FileWriter.to_payload(result),
            "report": proc_result.to_dict(),
        }

    @app.post("/api/merge/download")
    async def merge_and_download(
        file: UploadFile = File(...),
        profile: str = Form(...),
    ) -> Response:
        """Merge an uploaded file and download the result."""
        global_config = config_loader.global_config
        merge_profile = require_profile(profile)
        results = await read_upload(file)

        records = [record for r in results for record in r.records]
        result, _ = MergeEngine(global_config).process(
            records, merge_profile, source_file=file.filename
        )

        writer = FileWriter(global_config.output)
        filename = writer.format_filename(
            merge_profile.profile.name, Path(file.filename or "upload").stem
        )
        media_type = (
            "application/yaml" if global_config.output.format.value == "yaml"
            else "application/json"
        )
        return Response(
            content=writer.write_bytes(result),
            media_type=media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


# Default app instance
app = create_app()
