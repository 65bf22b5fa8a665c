import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog.book import BookPatch
from catalog.config import settings
from catalog.errors import BookValidationError, CatalogError, ErrorKind
from catalog.library import Library

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

BOOKS_PATH = "/api/books"
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE"]

_library: Optional[Library] = None
_library_lock = threading.Lock()


def get_library() -> Library:
    """Dependency returning the process-wide Library, created on first use."""
    global _library
    if _library is None:
        with _library_lock:
            if _library is None:
                _library = Library(settings.database_url)
    return _library


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _library
    try:
        yield
    finally:
        with _library_lock:
            if _library is not None:
                _library.close()
                _library = None


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Models ---
class BookModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    genre: str


class BookCreateModel(BaseModel):
    title: str | None = None
    author: str | None = None
    genre: str | None = None


class BookUpdateModel(BaseModel):
    id: int | None = None
    title: str | None = None
    author: str | None = None
    genre: str | None = None


class BookDeleteModel(BaseModel):
    id: int | None = None


class Envelope(BaseModel):
    """Uniform response wrapper shared by every /api/books operation."""

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None


def _envelope(status_code: int, headers: dict | None = None, **fields) -> JSONResponse:
    body = Envelope(**fields).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


# --- Error handlers ---
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if exc.kind is ErrorKind.INTERNAL:
        logger.error(f"API Error: {request.method} {request.url.path}: {exc.message}")
        return _envelope(exc.kind.status_code, success=False, error="Internal server error")
    return _envelope(exc.kind.status_code, success=False, error=exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body on {request.method} {request.url.path}: {exc.errors()}")
    return _envelope(ErrorKind.VALIDATION.status_code, success=False, error="Invalid request body")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    headers = dict(exc.headers or {})
    error = str(exc.detail)
    if exc.status_code == ErrorKind.METHOD_NOT_ALLOWED.status_code and request.url.path == BOOKS_PATH:
        headers["Allow"] = ", ".join(ALLOWED_METHODS)
        error = f"Method {request.method} not allowed"
    return _envelope(exc.status_code, headers=headers or None, success=False, error=error)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"API Error: {request.method} {request.url.path}")
    return _envelope(ErrorKind.INTERNAL.status_code, success=False, error="Internal server error")


# --- Health check ---
@app.get("/health")
def health(library: Library = Depends(get_library)):
    """Lightweight health endpoint: database round trip and record count."""
    db_ok = True
    total_books = 0
    try:
        with library.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        total_books = library.count_books()
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_ok = False
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_books": total_books,
        "db": db_ok,
    }


# --- Books resource ---
@app.get(BOOKS_PATH)
def list_books(library: Library = Depends(get_library)):
    """Return every book in the catalog."""
    books = [BookModel.model_validate(b).model_dump() for b in library.list_books()]
    return _envelope(200, success=True, data=books)


@app.post(BOOKS_PATH)
def create_book(payload: Optional[BookCreateModel] = None, library: Library = Depends(get_library)):
    """Create a book; title, author and genre are all required."""
    payload = payload or BookCreateModel()
    book = library.add_book(payload.title, payload.author, payload.genre)
    return _envelope(201, success=True, data=BookModel.model_validate(book).model_dump())


@app.put(BOOKS_PATH)
def update_book(payload: Optional[BookUpdateModel] = None, library: Library = Depends(get_library)):
    """Update the non-empty fields of a book."""
    payload = payload or BookUpdateModel()
    if not payload.id:
        raise BookValidationError("Book ID is required for updates")
    patch = BookPatch.from_fields(title=payload.title, author=payload.author, genre=payload.genre)
    library.update_book(payload.id, patch)
    return _envelope(200, success=True, message="Book updated successfully")


@app.delete(BOOKS_PATH)
def delete_book(payload: Optional[BookDeleteModel] = None, library: Library = Depends(get_library)):
    payload = payload or BookDeleteModel()
    if not payload.id:
        raise BookValidationError("Book ID is required")
    library.remove_book(payload.id)
    return _envelope(200, success=True, message="Book deleted successfully")
