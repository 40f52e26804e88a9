"""HTTP front end for the risk engine."""

from __future__ import annotations

import json
import logging
from typing import Optional

from aiohttp import web

from ..analyzer.engine import RiskEngine
from ..analyzer.errors import InvalidRequestError, PersistenceError
from ..analyzer.models import EvaluationRequest
from ..storage.database import Database

logger = logging.getLogger(__name__)

ENGINE_KEY = web.AppKey("engine", RiskEngine)
DATABASE_KEY = web.AppKey("database", Database)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    response = await handler(request)
    response.headers.update(_CORS_HEADERS)
    return response


async def handle_preflight(request: web.Request) -> web.Response:
    return web.Response(status=204)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def handle_evaluate(request: web.Request) -> web.Response:
    """POST /api/risk/evaluate {url, userId?, context?}."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "request body must be JSON")

    try:
        evaluation = EvaluationRequest.from_payload(payload)
    except InvalidRequestError as exc:
        return _error(400, exc.message)

    engine = request.app[ENGINE_KEY]
    try:
        verdict = await engine.evaluate(
            evaluation.url,
            user_id=evaluation.user_id,
            context=evaluation.context,
        )
    except InvalidRequestError as exc:
        return _error(400, exc.message)
    except PersistenceError as exc:
        return _error(500, exc.message)

    return web.json_response(verdict.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    payload: dict = {"ok": True}
    cache = getattr(request.app[ENGINE_KEY].age_prober, "cache", None)
    if cache is not None:
        payload["domainAgeCache"] = cache.stats()
    return web.json_response(payload)


async def handle_health_db(request: web.Request) -> web.Response:
    database = request.app.get(DATABASE_KEY)
    if database is None:
        return web.json_response({"ok": False, "error": "No database configured"}, status=500)
    try:
        healthy = await database.ping()
    except Exception as exc:
        logger.warning("Database health check failed: %s", exc)
        return web.json_response({"ok": False, "error": str(exc) or "DB error"}, status=500)
    return web.json_response({"ok": True, "db": healthy})


def create_app(engine: RiskEngine, database: Optional[Database] = None) -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app[ENGINE_KEY] = engine
    if database is not None:
        app[DATABASE_KEY] = database

    app.router.add_get("/api/health", handle_health)
    app.router.add_get("/api/health/db", handle_health_db)
    app.router.add_post("/api/risk/evaluate", handle_evaluate)
    app.router.add_route("OPTIONS", "/api/risk/evaluate", handle_preflight)
    return app


class ApiServer:
    """Serves the evaluation API."""

    def __init__(
        self,
        host: str,
        port: int,
        engine: RiskEngine,
        database: Optional[Database] = None,
    ):
        self.host = host
        self.port = port
        self.engine = engine
        self.database = database
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    async def start(self):
        """Start the API server."""
        app = create_app(self.engine, self.database)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("API server listening on %s:%s", self.host, self.port)

    async def stop(self):
        """Stop the API server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None
