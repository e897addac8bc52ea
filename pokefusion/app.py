from __future__ import annotations

import logging
import random
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .cards import missing_sprite_png, render_card_png
from .config import Settings
from .engine import FusionEngine
from .entries import CustomEntryStore
from .errors import FusionComputationError, InvalidParameterError, UnknownCreatureError
from .images import ImageResolver, type_icon_path
from .logs import setup_logging
from .middleware import FixedWindowRateLimiter, install_middleware
from .names import NameSplitTable
from .roster import RosterStore

logger = logging.getLogger(__name__)

HeadName = Annotated[Optional[str], Query(description="Head Pokemon name; random when omitted")]
BodyName = Annotated[Optional[str], Query(description="Body Pokemon name; random when omitted")]


# -------------------- Services --------------------

@dataclass
class Services:
    roster: RosterStore
    splits: NameSplitTable
    entries: CustomEntryStore
    images: ImageResolver
    engine: FusionEngine


def load_services(settings: Settings, rng: Optional[random.Random] = None) -> Services:
    """Load every store once; any failure here must abort startup."""
    roster = RosterStore.load(settings.roster_path)
    splits = NameSplitTable.default(roster)
    if settings.custom_entries_path.exists():
        entries = CustomEntryStore.load(settings.custom_entries_path)
    else:
        logger.warning("No custom entries at %s, using spliced entries only", settings.custom_entries_path)
        entries = CustomEntryStore.empty()
    images = ImageResolver.from_dirs(settings.custom_sprites_dir, settings.autogen_sprites_dir)
    engine = FusionEngine(roster, splits, entries, rng=rng, images=images)
    return Services(roster, splits, entries, images, engine)


def _services(request: Request) -> Services:
    return request.app.state.services


def _ok(data, started: float) -> dict:
    return {
        "success": True,
        "data": data,
        "processingTime": f"{int((time.perf_counter() - started) * 1000)}ms",
    }


# -------------------- App --------------------

def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            app.state.services = load_services(settings)
        else:
            app.state.services = services
        logger.info("Pokefusion %s ready (%s)", __version__, settings.environment)
        yield

    app = FastAPI(title="Pokefusion", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.limiter = FixedWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins), allow_credentials=False,
        allow_methods=["GET"], allow_headers=["*"],
    )
    install_middleware(app, limiter=app.state.limiter, max_url_length=settings.max_url_length)
    if settings.sprites_dir.is_dir():
        app.mount("/sprites", StaticFiles(directory=settings.sprites_dir), name="sprites")
    else:
        logger.warning("Sprites directory not found, /sprites is not served: %s", settings.sprites_dir)

    _register_errors(app, settings)
    _register_routes(app, settings)
    return app


def _register_errors(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(UnknownCreatureError)
    async def unknown_creature(request: Request, exc: UnknownCreatureError):
        return JSONResponse(status_code=400, content={
            "success": False,
            "error": f"{exc}. Use GET /api/pokemon to see available Pokemon.",
            "provided": exc.name,
        })

    @app.exception_handler(InvalidParameterError)
    async def invalid_parameter(request: Request, exc: InvalidParameterError):
        logger.warning("Invalid parameters on %s: %s", request.url.path, exc.provided)
        return JSONResponse(status_code=400, content={
            "success": False,
            "error": "Invalid parameters",
            "message": exc.message,
            "provided": exc.provided,
        })

    @app.exception_handler(RequestValidationError)
    async def request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={
            "success": False,
            "error": "Invalid parameters",
            "message": "; ".join(str(e.get("msg")) for e in exc.errors()),
        })

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = {"success": False, **exc.detail}
        else:
            content = {"success": False, "error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    def server_fault(exc: Exception, message: str) -> JSONResponse:
        content = {"success": False, "error": message}
        if not settings.is_production:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(FusionComputationError)
    async def fusion_failed(request: Request, exc: FusionComputationError):
        logger.error("Fusion computation failed on %s", request.url.path, exc_info=exc)
        return server_fault(exc, "Failed to generate fusion")

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return server_fault(exc, "Internal server error")


def _register_routes(app: FastAPI, settings: Settings) -> None:
    @app.get("/")
    def index():
        return {
            "name": "Pokefusion",
            "version": __version__,
            "endpoints": [
                "/api/fusion", "/api/fusion/names", "/api/fusion/types",
                "/api/fusion/stats", "/api/fusion/pokedex", "/api/fusion/card",
                "/api/pokemon", "/api/pokemon/types",
                "/api/images/fusion/{headId}/{bodyId}", "/api/images/types/{typeName}",
                "/api/health",
            ],
        }

    @app.get("/api/health")
    def health(request: Request):
        svc = _services(request)
        return {
            "ok": True,
            "environment": settings.environment,
            "pokemon": len(svc.roster),
            "customEntries": len(svc.entries),
        }

    # ---- roster ----

    @app.get("/api/pokemon")
    def pokemon(request: Request):
        started = time.perf_counter()
        names = list(_services(request).roster.all_names())
        return _ok({"pokemon": names, "count": len(names)}, started)

    @app.get("/api/pokemon/types")
    def pokemon_types(request: Request):
        started = time.perf_counter()
        types = {str(k): list(v) for k, v in _services(request).roster.types_by_id().items()}
        return _ok(types, started)

    # ---- fusion ----

    @app.get("/api/fusion")
    def fusion(request: Request, head: HeadName = None, body: BodyName = None):
        started = time.perf_counter()
        result = _services(request).engine.generate_fusion(head, body)
        return _ok(result.to_json(), started)

    @app.get("/api/fusion/names")
    def fusion_names(request: Request, head: HeadName = None, body: BodyName = None):
        started = time.perf_counter()
        return _ok(_services(request).engine.get_names(head, body), started)

    @app.get("/api/fusion/types")
    def fusion_types(request: Request, head: HeadName = None, body: BodyName = None):
        started = time.perf_counter()
        return _ok(_services(request).engine.get_types(head, body), started)

    @app.get("/api/fusion/stats")
    def fusion_stats(request: Request, head: HeadName = None, body: BodyName = None):
        started = time.perf_counter()
        return _ok(_services(request).engine.get_stats(head, body), started)

    @app.get("/api/fusion/pokedex")
    def fusion_pokedex(request: Request, head: HeadName = None, body: BodyName = None):
        started = time.perf_counter()
        return _ok(_services(request).engine.get_pokedex(head, body), started)

    @app.get("/api/fusion/card")
    def fusion_card(request: Request, head: HeadName = None, body: BodyName = None):
        svc = _services(request)
        result = svc.engine.generate_fusion(head, body)
        png = render_card_png(result, svc.images.local_path(result.head_id, result.body_id))
        return Response(
            content=png, media_type="image/png",
            headers={"X-Fusion-Id": result.fusion_id, "Cache-Control": "no-store"},
        )

    # ---- images ----

    @app.get("/api/images/fusion/{head_id}/{body_id}")
    def fusion_image(request: Request, head_id: str, body_id: str):
        ref = _services(request).images.resolve(head_id, body_id)
        return RedirectResponse(
            ref.locator, status_code=302,
            headers={"Cache-Control": "public, max-age=3600", "X-Sprite-Attribution": ref.attribution.value},
        )

    @app.get("/api/images/fusion/{head_id}/{body_id}/info")
    def fusion_image_info(request: Request, head_id: str, body_id: str):
        started = time.perf_counter()
        ref = _services(request).images.resolve(head_id, body_id)
        return _ok(ref.model_dump(mode="json"), started)

    @app.get("/api/images/types/{type_name}")
    def type_icon(type_name: str):
        path = type_icon_path(settings.assets_dir, type_name)
        if path is None:
            raise HTTPException(404, {"error": f"Type '{type_name.lower()}' does not exist", "provided": type_name})
        return FileResponse(path, media_type="image/png", headers={"Cache-Control": "public, max-age=86400"})

    @app.get("/api/images/missing")
    def missing_image():
        return Response(content=missing_sprite_png(), media_type="image/png",
                        headers={"Cache-Control": "public, max-age=86400"})


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="warning")
