from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI

from app.core import settings
from app.core.cache import RedisCache, cache_health
from app.core.errors import CharacterSheetError
from app.core.observability import emit
from app.core.sheets import GoogleSheetsClient
from app.modules.characters.layout import FieldRegistry, load_registry
from app.modules.characters.router import router as characters_router
from app.modules.characters.service import CharacterService

APP_VERSION = settings.get_app_version()


def build_character_service(registry: FieldRegistry) -> CharacterService:
    cache = RedisCache()
    return CharacterService(
        registry=registry,
        sheets=GoogleSheetsClient(),
        cache=cache,
        ttl_seconds=settings.get_cache_ttl_seconds(),
        cache_enabled=settings.is_cache_enabled(),
        resolve_identity=settings.resolve_identity_enabled(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a broken layout is fatal: LayoutError propagates and the app does not start
    path = settings.get_field_layout_path()
    registry = load_registry(path)
    app.state.registry = registry
    app.state.layout_path = str(path)
    app.state.character_service = build_character_service(registry)
    emit("info", "app.startup", f"field layout loaded: {len(registry)} fields", None, __name__, path=str(path))
    yield


app = FastAPI(title="Character Sheet API", version=APP_VERSION, lifespan=lifespan)
app.state.last_error_summary = None

# === BATCH-0 OBSERVABILITY FOUNDATIONS (DO NOT EDIT WITHOUT CR) ===
# Contract locks:
# - Port: api=3000
# - /health keys: status, version, layout, cache, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details
import uuid
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    if status_code >= 500:
        app.state.last_error_summary = {"error": error, "message": message, "request_id": request_id}
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )

@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp,'status_code',None)}", rid, __name__)
    return resp

@app.exception_handler(CharacterSheetError)
async def _character_exc_handler(request: Request, exc: CharacterSheetError):
    rid = getattr(request.state, "request_id", None)
    level = "error" if exc.status_code >= 500 else "warning"
    emit(level, "character.error", exc.message, rid, __name__, error=exc.error, type=type(exc).__name__)
    return _err_envelope(exc.error, exc.message, rid, exc.details, exc.status_code)

@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("http_error", str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)

@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, exc.errors(), 422)

@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    emit("error", "http.request.unhandled", str(exc), rid, __name__, type=type(exc).__name__)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)
# === END BATCH-0 OBSERVABILITY FOUNDATIONS ===


@app.get("/health")
def health(request: Request) -> Dict[str, Any]:
    # Contract keys are locked by BATCH-0
    registry = getattr(request.app.state, "registry", None)
    service = getattr(request.app.state, "character_service", None)
    layout = {"status": "error", "fields": 0, "path": getattr(request.app.state, "layout_path", None)}
    if registry is not None:
        layout.update(status="ok", fields=len(registry))
    cache = {"status": "disabled"}
    if service is not None and service.cache is not None:
        cache = cache_health(service.cache)
    return {
        "status": "ok",
        "version": APP_VERSION,
        "layout": layout,
        "cache": cache,
        "last_error_summary": request.app.state.last_error_summary,
    }


app.include_router(characters_router)


if __name__ == "__main__":
    import uvicorn

    host, port = settings.get_bind_address()
    uvicorn.run("app.main:app", host=host, port=port)
