"""Shared fixtures: an app on in-memory SQLite with helpers for users and books."""
from __future__ import annotations

from decimal import Decimal

import pytest

from core import create_app, db, Book, User, Role


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "bookstore-test",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_BOOKS": False,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "SESSION_FILE_DIR": str(tmp_path / "sessions"),
        "ADMIN_EMAILS": ["boss@example.com"],
        "ADMIN_USERNAMES": ["root"],
        "MAIL_SERVER": "smtp.example.com",
        "MAIL_PORT": 2525,
        "MAIL_USE_TLS": False,
        "MAIL_USERNAME": None,
        "MAIL_DEFAULT_SENDER": "shop@example.com",
        "CONTACT_RECIPIENT": "owner@example.com",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username="reader", email=None, password="Secret123!", role=Role.USER):
        with app.app_context():
            user = User(username=username, email=email or f"{username}@example.com", role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def make_book(app):
    def _make(**overrides):
        fields = {
            "title": "Sapiens",
            "author": "Yuval Noah Harari",
            "description": "A brief history of humankind.",
            "category": "Non-Fiction",
            "price": Decimal("9.99"),
        }
        fields.update(overrides)
        with app.app_context():
            book = Book(**fields)
            db.session.add(book)
            db.session.commit()
            return book.id
    return _make


@pytest.fixture
def login(client):
    def _login(username="reader", password="Secret123!"):
        return client.post("/login", data={"username": username, "password": password})
    return _login


@pytest.fixture
def reader(make_user, login):
    make_user("reader")
    login("reader")


@pytest.fixture
def admin(make_user, login):
    make_user("boss", email="boss@example.com", role=Role.ADMIN)
    login("boss")


@pytest.fixture
def fetch_book(app):
    def _fetch(book_id):
        with app.app_context():
            book = db.session.get(Book, book_id)
            if book is not None:
                db.session.expunge(book)
            return book
    return _fetch
