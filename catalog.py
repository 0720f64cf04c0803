# catalog.py
from sqlalchemy.exc import SQLAlchemyError
from decimal import Decimal, InvalidOperation

from core import db, Book, CATEGORY_ORDER
from logging_setup import get_logger
import images

LOG = get_logger("bookstore.catalog")

BOOK_FIELDS = ("title", "author", "description", "category")


def coerce_price(value):
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}") from None
    if not price.is_finite() or price < 0:
        raise ValueError(f"Invalid price: {value!r}")
    return price


# --- Queries ---
def list_all():
    return Book.query.order_by(Book.id).all()

def list_by_category(category):
    return Book.query.filter(Book.category == category).order_by(Book.id).all()

def get_by_id(book_id):
    return db.session.get(Book, book_id)

def categories():
    stored = [c for (c,) in db.session.query(Book.category).distinct().order_by(Book.category)]
    return CATEGORY_ORDER + [c for c in stored if c not in CATEGORY_ORDER]


# --- Mutations (admin only) ---
def _commit(stored):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        if stored:
            images.delete_image(stored["filename"])
        raise

def create_book(fields, image=None):
    book = Book(
        title=(fields.get("title") or "").strip(),
        author=(fields.get("author") or "").strip(),
        description=(fields.get("description") or "").strip() or None,
        category=(fields.get("category") or "").strip(),
        price=coerce_price(fields.get("price", "")),
    )
    if not book.title or not book.author or not book.category:
        raise ValueError("Title, author and category are required")

    stored = images.save_image(image)
    if stored:
        book.image_url = stored["url"]
        book.image_filename = stored["filename"]

    db.session.add(book)
    _commit(stored)
    LOG.info("Created book %s (%s)", book.id, book.title)
    return book

def update_book(book, fields, image=None):
    """Apply only the non-empty fields; everything else keeps its value."""
    raw_price = (fields.get("price") or "").strip()
    price = coerce_price(raw_price) if raw_price else None
    for name in BOOK_FIELDS:
        value = (fields.get(name) or "").strip()
        if value:
            setattr(book, name, value)
    if price is not None:
        book.price = price

    previous = book.image_filename
    stored = images.save_image(image)
    if stored:
        book.image_url = stored["url"]
        book.image_filename = stored["filename"]

    _commit(stored)
    # the old cover goes only once the new one is committed
    if stored and previous:
        images.delete_image(previous)
    LOG.info("Updated book %s", book.id)
    return book

def delete_book(book):
    # Carts keep their snapshots and orders their own line items.
    book_id = book.id
    db.session.delete(book)
    db.session.commit()
    LOG.info("Deleted book %s", book_id)


# --- Sample data ---
SAMPLE_BOOKS = [
    # Children's
    {"title": "Where the Wild Things Are", "author": "Maurice Sendak", "category": "Children's", "price": Decimal("7.99"),
     "description": "Max sails off to the land of the wild things."},
    {"title": "The Very Hungry Caterpillar", "author": "Eric Carle", "category": "Children's", "price": Decimal("7.99"),
     "description": "A caterpillar eats its way through the week."},
    # Fiction
    {"title": "The Phantom Tollbooth", "author": "Norton Juster", "category": "Fiction", "price": Decimal("8.99"),
     "description": "Milo drives through a tollbooth into the Kingdom of Wisdom."},
    {"title": "Coraline", "author": "Neil Gaiman", "category": "Fiction", "price": Decimal("8.99"),
     "description": "A door in a new house leads to an Other Mother."},
    # Non-Fiction
    {"title": "Sapiens", "author": "Yuval Noah Harari", "category": "Non-Fiction", "price": Decimal("9.99"),
     "description": "A brief history of humankind."},
    {"title": "Atomic Habits", "author": "James Clear", "category": "Non-Fiction", "price": Decimal("9.99"),
     "description": "Small changes, remarkable results."},
]

def seed_if_empty():
    """Seed initial books on first run."""
    if Book.query.count() > 0:
        return
    for b in SAMPLE_BOOKS:
        db.session.add(Book(**b))
    db.session.commit()
    LOG.info("Seeded %d sample books", len(SAMPLE_BOOKS))
