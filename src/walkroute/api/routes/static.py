"""Raw geometry passthrough for the map client."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from ...services.geometry.store import FileGeometryStore

router = APIRouter(prefix="/static", tags=["static"])


@router.get("/{category}/{name:path}")
def get_resource(category: str, name: str) -> FileResponse:
    store = FileGeometryStore()
    try:
        path = store.resolve_path(category, name)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden") from exc
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    media_type = "application/geo+json" if path.suffix == ".geojson" else None
    return FileResponse(path, media_type=media_type, headers={"Cache-Control": "public, max-age=3600"})
