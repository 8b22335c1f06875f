import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, List, NoReturn, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from book import Book
from config import settings
from library import BookNotFoundError, Library, LibraryError

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class IndentedJSONResponse(JSONResponse):
    """JSON response pretty-printed with a four-space indent."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=4,
        ).encode("utf-8")


# --- Models ---
class BookModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Strict types: a quoted or fractional quantity is a decoding error, not coerced
    id: str = Field(default="", strict=True)
    title: str = Field(default="", strict=True)
    author: str = Field(default="", strict=True)
    quantity: int = Field(default=0, strict=True, ge=INT64_MIN, le=INT64_MAX)

    @model_validator(mode="before")
    @classmethod
    def _fold_keys(cls, data: Any) -> Any:
        """Match keys case-insensitively and treat null as "leave the default"."""
        if not isinstance(data, dict):
            return data
        folded = {}
        for key, value in data.items():
            if not isinstance(key, str) or value is None:
                continue
            name = key.lower()
            if name in cls.model_fields:
                folded[name] = value
        return folded


class CheckoutResponse(BaseModel):
    message: str
    data: BookModel


class HealthModel(BaseModel):
    status: str
    timestamp: str
    total_books: int
    version: str


# --- Dependencies ---
def get_library(request: Request) -> Library:
    """Hand the app-owned store to a route."""
    return request.app.state.library


def _raise_http(exc: LibraryError) -> NoReturn:
    status_code = 404 if isinstance(exc, BookNotFoundError) else 400
    raise HTTPException(status_code=status_code, detail=exc.message) from exc


def _to_model(book: Book) -> BookModel:
    return BookModel(**book.to_dict())


def _first(values: Optional[List[str]]) -> Optional[str]:
    # Repeated query keys resolve to the first value
    return values[0] if values else None


# --- Routes ---
router = APIRouter()


@router.get("/health", response_model=HealthModel)
def health(library: Library = Depends(get_library)):
    """Lightweight liveness check."""
    return HealthModel(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        total_books=library.count(),
        version=settings.app_version,
    )


@router.get("/books", response_model=List[BookModel])
def list_books(library: Library = Depends(get_library)):
    """All books, in the order they were added."""
    return [_to_model(book) for book in library.list_books()]


@router.post("/books", response_model=BookModel, status_code=201)
def create_book(payload: BookModel, library: Library = Depends(get_library)):
    """Append a book exactly as sent. Ids are not checked for collisions."""
    book = library.add_book(Book.from_dict(payload.model_dump()))
    return _to_model(book)


@router.get("/books/{book_id}", response_model=BookModel)
def get_book(book_id: str, library: Library = Depends(get_library)):
    try:
        book = library.find_book(book_id)
    except BookNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    return _to_model(book)


@router.patch("/checkout", response_model=CheckoutResponse)
def checkout_book(
    id: Optional[List[str]] = Query(default=None, description="ID of the book to check out"),
    library: Library = Depends(get_library),
):
    """Take one copy out. Refused with 400 once no copies are left."""
    try:
        book = library.checkout_book(_first(id))
    except LibraryError as e:
        _raise_http(e)
    return CheckoutResponse(message="success", data=_to_model(book))


@router.patch("/return", response_model=BookModel)
def return_book(
    id: Optional[List[str]] = Query(default=None, description="ID of the book being returned"),
    library: Library = Depends(get_library),
):
    """Put one copy back. There is no upper bound on quantity."""
    try:
        book = library.return_book(_first(id))
    except LibraryError as e:
        _raise_http(e)
    return _to_model(book)


# --- Error handlers ---
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return IndentedJSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected payload on {request.method} {request.url.path}: {len(exc.errors())} error(s)")
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return IndentedJSONResponse(
        status_code=400,
        content={"message": "invalid book payload", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return IndentedJSONResponse(status_code=500, content={"message": "internal server error"})


# --- Application ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} v{settings.app_version} starting with {app.state.library.count()} books")
    yield
    logger.info(f"{settings.app_name} shutting down")


def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the API around `library`, or a freshly seeded one."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        default_response_class=IndentedJSONResponse,
    )
    app.state.library = library if library is not None else Library(seed=settings.seed_books)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router)
    return app


app = create_app()
