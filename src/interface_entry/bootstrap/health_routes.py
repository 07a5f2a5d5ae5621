from __future__ import annotations

from typing import Dict

from fastapi import FastAPI, Response, status

from project_utility.clock import utc_iso


def register_health_routes(app: FastAPI, *, app_env: str) -> None:
    @app.get("/")
    async def root_probe() -> Dict[str, object]:
        return {
            "status": "ok",
            "env": app_env,
            "timestamp": utc_iso(),
        }

    @app.head("/")
    async def root_probe_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/healthz")
    async def healthz() -> Dict[str, object]:
        return {"status": "ok", "timestamp": utc_iso()}
