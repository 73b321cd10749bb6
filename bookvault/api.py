import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookvault.book import Book
from bookvault.config import settings
from bookvault.database import SQLITE_INT_MAX, SQLITE_INT_MIN
from bookvault.library import Library, StorageError

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# --- Models ---
class BookModel(BaseModel):
    id: int
    title: str
    author: str
    year: int | None = Field(default=None, ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    genre: str | None = None
    description: str | None = None
    rating: float | None = None


class BookCreateModel(BaseModel):
    # title/author are checked by the library so a missing value becomes a 400, not a 422
    title: str | None = None
    author: str | None = None
    year: int | None = Field(default=None, ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    genre: str | None = None
    description: str | None = None
    rating: float | None = None


class UpdateBookModel(BaseModel):
    title: str | None = None
    author: str | None = None
    year: int | None = Field(default=None, ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    genre: str | None = None
    description: str | None = None
    rating: float | None = None


class BookResponse(BaseModel):
    message: str
    data: BookModel


class BookListResponse(BaseModel):
    message: str
    data: List[BookModel]


class DeleteResponse(BaseModel):
    message: str
    changes: int


# --- Dependencies ---
def get_library(request: Request) -> Library:
    """The Library instance injected at startup by create_app()."""
    return request.app.state.library


def _book_model(book: Book) -> BookModel:
    return BookModel(**book.to_dict())


# --- Book routes ---
router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("", response_model=BookListResponse)
def list_books(
    search: Optional[str] = Query(None, description="Case-insensitive text matched against title, author and genre"),
    library: Library = Depends(get_library),
):
    """List all books, optionally filtered by a search text."""
    books = library.list_books(search)
    return BookListResponse(message="success", data=[_book_model(b) for b in books])


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, library: Library = Depends(get_library)):
    """Get a single book by id."""
    book = library.find_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse(message="success", data=_book_model(book))


@router.post("", response_model=BookResponse, status_code=201)
def add_book(payload: BookCreateModel, library: Library = Depends(get_library)):
    """Add a new book. Title and author are required."""
    try:
        book = library.add_book(Book(**payload.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookResponse(message="success", data=_book_model(book))


@router.put("/{book_id}", response_model=BookResponse)
def update_book(book_id: int, update: UpdateBookModel, library: Library = Depends(get_library)):
    """Update only the fields present in the request body."""
    try:
        book = library.update_book(book_id, update.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse(message="success", data=_book_model(book))


@router.delete("/{book_id}", response_model=DeleteResponse)
def delete_book(book_id: int, library: Library = Depends(get_library)):
    """Delete a book by id."""
    changes = library.remove_book(book_id)
    if changes == 0:
        raise HTTPException(status_code=404, detail="Book not found")
    return DeleteResponse(message="deleted", changes=changes)


# --- Error handlers ---
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid request"})


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the API around an explicitly constructed Library.

    With no argument a Library is opened on the configured database file,
    which is what ``uvicorn --factory bookvault.api:create_app`` relies on.
    """
    library = library or Library(settings.database_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} using database {library.db_file}")
        yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.library = library

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(router)

    @app.get("/health")
    def health_check(library: Library = Depends(get_library)):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "total_books": library.count_books(),
        }

    # --- Static files ---
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    def read_root():
        """Serve the main HTML page."""
        return FileResponse(STATIC_DIR / "index.html")

    return app
