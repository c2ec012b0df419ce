"""FastAPI routes for the Catalogue context — publishing, listings and search."""

from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from bookstore.accounts.account.user import User
from bookstore.accounts.admin.admin import Admin, Permission
from bookstore.accounts.publisher.publisher import Publisher
from bookstore.api.security import current_publisher, current_user
from bookstore.catalogue.api.schemas import BookIdResponse, BookPageResponse, BookResponse, StatusResponse
from bookstore.catalogue.book.book import Book
from bookstore.catalogue.book.listing import DEFAULT_PAGE_SIZE, BookCriteria
from bookstore.catalogue.book.publishing import PublishBook, RecordBookView, UpdateBookDetails, WithdrawBook
from bookstore.utils.storage import UploadKind, remove_upload, store_upload

book_router = APIRouter(prefix="/api/books", tags=["books"])


def _repo():
    return current_domain.repository_for(Book)


async def _store(kind: UploadKind, upload: UploadFile | None) -> str | None:
    if upload is None or not upload.filename:
        return None
    return store_upload(kind, upload.filename, upload.content_type, await upload.read())


def _owned_book(book_id: str, publisher: Publisher) -> Book:
    book = _repo().get(book_id)
    if str(book.publisher_id) != str(publisher.id):
        raise HTTPException(status_code=403, detail="You can only manage your own books")
    return book


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------
@book_router.post("", status_code=201, response_model=BookIdResponse)
async def upload_book(
    title: str = Form(...),
    category: str = Form(...),
    publication_date: str = Form(...),
    price: float = Form(..., ge=0),
    keywords: str | None = Form(None),
    description: str | None = Form(None),
    book: UploadFile = File(...),
    cover_image: UploadFile | None = File(None),
    publisher: Publisher = Depends(current_publisher),
) -> BookIdResponse:
    file_path = await _store(UploadKind.BOOK, book)
    if file_path is None:
        raise ValidationError({"book": ["A book file is required"]})
    try:
        cover_path = await _store(UploadKind.COVER, cover_image)
    except ValidationError:
        remove_upload(file_path)
        raise

    command = PublishBook(
        publisher_id=str(publisher.id),
        title=title,
        category=category,
        publication_date=publication_date,
        price=price,
        keywords=keywords,
        description=description,
        file_path=file_path,
        cover_image_path=cover_path,
    )
    try:
        result = current_domain.process(command, asynchronous=False)
    except ValidationError:
        remove_upload(file_path)
        remove_upload(cover_path)
        raise
    return BookIdResponse(book_id=result)


@book_router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: str,
    title: str | None = Form(None),
    category: str | None = Form(None),
    publication_date: str | None = Form(None),
    price: float | None = Form(None, ge=0),
    keywords: str | None = Form(None),
    description: str | None = Form(None),
    book: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None),
    publisher: Publisher = Depends(current_publisher),
) -> BookResponse:
    _owned_book(book_id, publisher)

    file_path = await _store(UploadKind.BOOK, book)
    try:
        cover_path = await _store(UploadKind.COVER, cover_image)
    except ValidationError:
        remove_upload(file_path)
        raise

    command = UpdateBookDetails(
        book_id=book_id,
        title=title,
        category=category,
        publication_date=publication_date,
        price=price,
        keywords=keywords,
        description=description,
        file_path=file_path,
        cover_image_path=cover_path,
    )
    try:
        current_domain.process(command, asynchronous=False)
    except ValidationError:
        remove_upload(file_path)
        remove_upload(cover_path)
        raise
    return BookResponse.from_book(_repo().get(book_id))


@book_router.delete("/{book_id}", response_model=StatusResponse)
async def withdraw_book(book_id: str, user: User = Depends(current_user)) -> StatusResponse:
    """Owners withdraw their own books; admins with book management may withdraw any."""
    book = _repo().get(book_id)
    publisher = current_domain.repository_for(Publisher).find_by_user(user.id)
    admin = current_domain.repository_for(Admin).find_by_user(user.id)

    is_owner = publisher is not None and str(publisher.id) == str(book.publisher_id)
    is_moderator = admin is not None and admin.has_permission(Permission.BOOK_MANAGEMENT.value)
    if not (is_owner or is_moderator):
        raise HTTPException(status_code=403, detail="Not allowed to withdraw this book")

    current_domain.process(WithdrawBook(book_id=book_id, withdrawn_by=str(user.id)), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
@book_router.get("", response_model=BookPageResponse)
async def list_books(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> BookPageResponse:
    return BookPageResponse.from_results(_repo().listed(offset=offset, limit=limit), offset, limit)


@book_router.get("/newly-released", response_model=list[BookResponse])
async def newly_released() -> list[BookResponse]:
    return [BookResponse.from_book(book) for book in _repo().newly_released()]


@book_router.get("/top-selling", response_model=list[BookResponse])
async def top_selling() -> list[BookResponse]:
    return [BookResponse.from_book(book) for book in _repo().top_selling()]


@book_router.get("/most-popular", response_model=list[BookResponse])
async def most_popular() -> list[BookResponse]:
    return [BookResponse.from_book(book) for book in _repo().most_popular()]


@book_router.get("/categories", response_model=list[str])
async def categories() -> list[str]:
    return _repo().categories()


@book_router.get("/category/{category}", response_model=BookPageResponse)
async def books_by_category(
    category: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> BookPageResponse:
    return BookPageResponse.from_results(_repo().by_category(category, offset=offset, limit=limit), offset, limit)


@book_router.get("/search", response_model=BookPageResponse)
async def search_books(
    q: str = Query(..., min_length=1),
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> BookPageResponse:
    return BookPageResponse.from_results(_repo().search(q.strip(), offset=offset, limit=limit), offset, limit)


@book_router.get("/search/filter", response_model=BookPageResponse)
async def filter_books(
    title: str | None = None,
    author: str | None = None,
    category: str | None = None,
    keyword: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    min_rating: float | None = Query(None, ge=0, le=5),
    max_rating: float | None = Query(None, ge=0, le=5),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> BookPageResponse:
    criteria = BookCriteria(
        title=title,
        author=author,
        category=category,
        keyword=keyword,
        start_date=start_date,
        end_date=end_date,
        min_rating=min_rating,
        max_rating=max_rating,
        min_price=min_price,
        max_price=max_price,
    )
    return BookPageResponse.from_results(_repo().matching(criteria, offset=offset, limit=limit), offset, limit)


@book_router.get("/my", response_model=list[BookResponse])
async def my_books(publisher: Publisher = Depends(current_publisher)) -> list[BookResponse]:
    return [BookResponse.from_book(book) for book in _repo().by_publisher(publisher.id)]


@book_router.get("/{book_id}", response_model=BookResponse)
async def get_book(book_id: str) -> BookResponse:
    current_domain.process(RecordBookView(book_id=book_id), asynchronous=False)
    return BookResponse.from_book(_repo().get(book_id))
