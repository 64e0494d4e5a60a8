import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response

from .core.config import (
    CORS_ORIGINS,
    LOG_LEVEL,
    SEED_CONSOLES,
    STORAGE_DIR,
    STORAGE_PUBLIC_BASE_URL,
)
from .db import SessionLocal, init_db
from .middleware import RequestLogMiddleware
from .routes import auth, chat, collection, friends, games, reports, users, wishlist
from .seed import seed_consoles
from .services.storage import LocalStorageClient, StorageError, get_storage_client

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gameshelf API", version="0.1.0")


def _is_origin_allowed(origin: str) -> bool:
    if not origin:
        return False
    return "*" in CORS_ORIGINS or origin in CORS_ORIGINS


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTP errors as {"detail": ...} and keep CORS headers on them."""
    origin = request.headers.get("origin", "")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )
    if _is_origin_allowed(origin):
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
    return response


# Middleware runs in reverse order of addition: CORS first, then request logging.
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if isinstance(get_storage_client(), LocalStorageClient):
        Path(STORAGE_DIR).mkdir(parents=True, exist_ok=True)
    if SEED_CONSOLES:
        db = SessionLocal()
        try:
            seed_consoles(db)
        finally:
            db.close()
    logger.info("Gameshelf API started (origins=%s)", ",".join(CORS_ORIGINS))


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.head("/health")
def health_check_head():
    return Response(status_code=200)


def get_stored_file(path: str):
    storage = get_storage_client()
    if not isinstance(storage, LocalStorageClient):
        raise HTTPException(status_code=404, detail="File not found")
    try:
        target = storage.resolve_path(path)
    except StorageError as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    if not target.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(target)


# Local uploads are served by the API itself when their public URL is a path.
if STORAGE_PUBLIC_BASE_URL.startswith("/"):
    app.add_api_route(
        STORAGE_PUBLIC_BASE_URL + "/{path:path}",
        get_stored_file,
        methods=["GET"],
        include_in_schema=False,
    )


app.include_router(auth.router, tags=["auth"])
app.include_router(users.router, tags=["users"])
app.include_router(games.router, tags=["games"])
app.include_router(wishlist.router, tags=["wishlist"])
app.include_router(collection.router, tags=["collection"])
app.include_router(reports.router, tags=["reports"])
app.include_router(friends.router, tags=["friends"])
app.include_router(chat.router, tags=["chat"])
