"""
Static frontend hosting with SPA fallback.

Serves a prebuilt frontend directory from the API service. Unknown paths
outside the API prefix fall back to index.html so client-side routing works.
"""
import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)

STATIC_DIR = os.getenv("STATIC_DIR", "")


def setup_static_frontend(
    app: FastAPI,
    static_dir: Optional[str] = STATIC_DIR,
    api_prefix: str = "",
) -> bool:
    """
    Register the catch-all frontend route. Must be called after the API
    routers are included, since routes match in registration order.

    Returns False (and registers nothing) when static_dir is not a directory.
    """
    if not static_dir or not os.path.isdir(static_dir):
        if static_dir:
            logger.warning(f"Static directory not found, frontend disabled: {static_dir}")
        return False

    root = os.path.realpath(static_dir)
    index_path = os.path.join(root, "index.html")
    logger.info(f"Serving frontend from {root}")

    @app.get("/{full_path:path}", include_in_schema=False)
    def serve_frontend(full_path: str):
        path = "/" + full_path
        if api_prefix and (path == api_prefix or path.startswith(api_prefix + "/")):
            raise HTTPException(status_code=404, detail="Not Found")

        candidate = os.path.realpath(os.path.join(root, full_path))
        # Never serve anything outside the static root
        if candidate.startswith(root + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)

        if not os.path.isfile(index_path):
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(index_path)

    return True
