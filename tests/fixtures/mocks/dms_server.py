"""Mock DMS server for exercising the client end to end."""

import logging
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import uvicorn

logger = logging.getLogger("mock-dms")

DEFAULT_CATALOG = {
    "ABC123": [
        {"version": "1.2.0", "description": "release", "tag": "stable", "size": 45000},
        {"version": "1.3.0-beta", "description": "preview", "tag": "beta", "size": 46000},
    ],
}


def image_bytes(version: str, size: int) -> bytes:
    """Deterministic fake firmware image of exactly size bytes."""
    seed = version.encode() or b"\x00"
    return (seed * (size // len(seed) + 1))[:size]


def create_app(catalog: Optional[dict] = None) -> FastAPI:
    """Build a mock DMS app with its own catalog and report log.

    Received installation reports are kept in ``app.state.reports``.
    """
    app = FastAPI(title="Mock DMS")
    app.state.catalog = catalog if catalog is not None else DEFAULT_CATALOG
    app.state.reports = []

    @app.api_route("/", methods=["GET", "HEAD"])
    async def health():
        return Response(status_code=200)

    @app.get("/api/v1.0/devices/{device_id}/firmware")
    async def list_firmware(device_id: str):
        return {"versions": app.state.catalog.get(device_id, [])}

    @app.get("/api/v1.0/devices/{device_id}/firmware/{version}")
    async def fetch_firmware(device_id: str, version: str):
        for entry in app.state.catalog.get(device_id, []):
            if entry["version"] == version:
                return Response(
                    content=image_bytes(version, entry["size"]),
                    media_type="application/octet-stream",
                )
        return JSONResponse(status_code=404, content={"msg": "Version not found"})

    @app.post("/api/v1.0/installations")
    async def report_installation(request: Request):
        body = await request.json()
        app.state.reports.append(body)
        logger.info(f"Received installation report: {body}")
        return {"code": 200, "msg": "success"}

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="127.0.0.1", port=9090, log_level="info")
