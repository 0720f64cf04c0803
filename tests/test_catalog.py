"""Catalog queries, partial updates and image handling."""
from __future__ import annotations

import io
import os
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from werkzeug.datastructures import FileStorage

import catalog
import images
from core import db, Book


def _upload(name="cover.png", data=b"\x89PNG fake"):
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type="image/png")


def test_list_by_category_is_exact_and_case_sensitive(app, make_book):
    make_book(title="Sapiens", category="Non-Fiction")
    make_book(title="Coraline", category="Fiction")
    make_book(title="Lowercase", category="fiction")

    with app.app_context():
        assert [b.title for b in catalog.list_by_category("Fiction")] == ["Coraline"]
        assert [b.title for b in catalog.list_by_category("Fict")] == []
        assert len(catalog.list_all()) == 3


def test_categories_keep_default_order_and_add_new_ones(app, make_book):
    make_book(category="Poetry")

    with app.app_context():
        assert catalog.categories() == ["Fiction", "Non-Fiction", "Children's", "Poetry"]


def test_listing_routes(client, make_book):
    make_book(title="Sapiens", category="Non-Fiction")
    make_book(title="Coraline", category="Fiction")

    all_books = client.get("/books")
    fiction = client.get("/books/category/Fiction")

    assert b"All books" in all_books.data
    assert b"Sapiens" in all_books.data and b"Coraline" in all_books.data
    assert b"Coraline" in fiction.data
    assert b"Sapiens" not in fiction.data


def test_details_page_and_missing_book(client, make_book):
    book_id = make_book(title="Sapiens")

    assert b"A brief history of humankind." in client.get(f"/books/{book_id}/details").data

    resp = client.get("/books/999/details", follow_redirects=True)
    assert resp.request.path == "/books"
    assert b"Book not found" in resp.data


def test_update_with_empty_price_keeps_existing_price(app, make_book):
    book_id = make_book(price=Decimal("9.99"))

    with app.test_request_context():
        book = catalog.get_by_id(book_id)
        catalog.update_book(book, {"price": "", "title": ""})
        book = db.session.get(Book, book_id)
        assert book.price == Decimal("9.99")
        assert book.title == "Sapiens"


def test_update_coerces_price_and_applies_given_fields_only(app, make_book):
    book_id = make_book()

    with app.test_request_context():
        catalog.update_book(catalog.get_by_id(book_id), {"price": "12.5", "category": "History"})
        book = db.session.get(Book, book_id)
        assert book.price == Decimal("12.5")
        assert book.category == "History"
        assert book.author == "Yuval Noah Harari"


@pytest.mark.parametrize("bad", ["abc", "-1", "NaN"])
def test_invalid_price_is_rejected_without_changes(app, make_book, bad):
    book_id = make_book()

    with app.test_request_context():
        with pytest.raises(ValueError):
            catalog.update_book(catalog.get_by_id(book_id), {"price": bad, "title": "Changed"})
        db.session.rollback()
        assert db.session.get(Book, book_id).title == "Sapiens"


def test_create_book_stores_uploaded_image(app):
    with app.test_request_context():
        book = catalog.create_book(
            {"title": "Coraline", "author": "Neil Gaiman", "category": "Fiction", "price": "8.99"},
            _upload(),
        )
        assert book.image_filename.endswith("_cover.png")
        assert book.image_url == f"/uploads/{book.image_filename}"
        assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], book.image_filename))


def test_create_book_requires_title_author_and_category(app):
    with app.test_request_context():
        with pytest.raises(ValueError):
            catalog.create_book({"title": "", "author": "x", "category": "Fiction", "price": "1"})
        assert Book.query.count() == 0


def test_unsupported_image_type_is_rejected(app):
    with app.test_request_context():
        with pytest.raises(ValueError):
            images.save_image(_upload(name="script.exe"))


def test_new_image_replaces_and_deletes_previous_one(app, make_book):
    book_id = make_book()

    with app.test_request_context():
        book = catalog.get_by_id(book_id)
        catalog.update_book(book, {}, _upload(name="first.png"))
        first = book.image_filename
        catalog.update_book(book, {}, _upload(name="second.png"))
        folder = app.config["UPLOAD_FOLDER"]
        assert not os.path.exists(os.path.join(folder, first))
        assert os.path.exists(os.path.join(folder, book.image_filename))
        assert book.image_filename.endswith("_second.png")


def test_failed_update_keeps_previous_image(app, make_book, monkeypatch):
    book_id = make_book()

    with app.test_request_context():
        book = catalog.get_by_id(book_id)
        catalog.update_book(book, {}, _upload(name="first.png"))
        first = book.image_filename

        def broken_commit():
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        monkeypatch.setattr(db.session, "commit", broken_commit)
        with pytest.raises(OperationalError):
            catalog.update_book(book, {"title": "Renamed"}, _upload(name="second.png"))
        monkeypatch.undo()

        folder = app.config["UPLOAD_FOLDER"]
        assert os.path.exists(os.path.join(folder, first))
        assert not [name for name in os.listdir(folder) if name.endswith("_second.png")]
        reloaded = db.session.get(Book, book_id)
        assert reloaded.image_filename == first
        assert reloaded.title == "Sapiens"


def test_failed_image_delete_is_not_raised(app, make_book):
    book_id = make_book(image_url="/uploads/gone.png", image_filename="gone.png")

    with app.test_request_context():
        assert images.delete_image("gone.png") is False
        book = catalog.update_book(catalog.get_by_id(book_id), {}, _upload())
        assert book.image_filename.endswith("_cover.png")


def test_uploaded_image_is_served(app, client):
    with app.test_request_context():
        stored = images.save_image(_upload(data=b"image-bytes"))

    resp = client.get(stored["url"])

    assert resp.status_code == 200
    assert resp.data == b"image-bytes"


def test_seed_if_empty_only_seeds_once(app):
    with app.app_context():
        catalog.seed_if_empty()
        count = Book.query.count()
        catalog.seed_if_empty()
        assert count == len(catalog.SAMPLE_BOOKS)
        assert Book.query.count() == count
