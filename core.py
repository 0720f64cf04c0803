# core.py
from flask import Flask, render_template
from flask_sqlalchemy import SQLAlchemy
from flask_session import Session
from cachelib.file import FileSystemCache
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs
from dotenv import load_dotenv
import enum
import os

from logging_setup import get_logger, configure_logging

LOG = get_logger("bookstore.core")

# --- DB handle (imported by blueprints) ---
db = SQLAlchemy()

# --- Constants shared across blueprints ---
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
CATEGORY_ORDER = ["Fiction", "Non-Fiction", "Children's"]
PAYMENT_METHOD = "Cash on Delivery"
ORDER_STATUS_PENDING = "Pending"


class Role(enum.Enum):
    USER = "user"
    ADMIN = "admin"


# --- Models ---
class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    role = db.Column(db.Enum(Role), nullable=False, default=Role.USER)
    password_hash = db.Column(db.String(255), nullable=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role is Role.ADMIN


class Book(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    author = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(40), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(300), nullable=True)
    image_filename = db.Column(db.String(200), nullable=True)

    def snapshot(self):
        """Copy of the book as it is now, safe to keep in the session."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "price": str(self.price),
            "image_url": self.image_url,
            "quantity": 1,
        }


class Order(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    customer_name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(300), nullable=False)
    city = db.Column(db.String(120), nullable=False)
    postal_code = db.Column(db.String(20), nullable=False)
    country = db.Column(db.String(80), nullable=False)
    payment_method = db.Column(db.String(40), nullable=False, default=PAYMENT_METHOD)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    order_date = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    status = db.Column(db.String(20), nullable=False, default=ORDER_STATUS_PENDING)

    items = db.relationship("OrderItem", backref="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    customer = db.relationship("User")


class OrderItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("order.id"), nullable=False)
    book_id = db.Column(db.Integer, nullable=True)  # not a FK: orders outlive deleted books
    title = db.Column(db.String(200), nullable=False)
    author = db.Column(db.String(120), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)


# --- Config ---
def _env_list(name):
    return [s.strip() for s in os.environ.get(name, "").split(",") if s.strip()]

def _env_bool(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

def load_config():
    load_dotenv()
    return {
        "SECRET_KEY": os.environ.get("SECRET_KEY", "dev-secret-change-me"),
        "SQLALCHEMY_DATABASE_URI": os.environ.get(
            "DATABASE_URL", f"sqlite:///{os.path.join(BASE_DIR, 'bookstore.db')}"
        ),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "SESSION_COOKIE_HTTPONLY": True,
        "PERMANENT_SESSION_LIFETIME": timedelta(days=7),
        "SESSION_TYPE": "cachelib",
        "SESSION_PERMANENT": True,
        "SESSION_FILE_DIR": os.environ.get("SESSION_FILE_DIR", os.path.join(BASE_DIR, "flask_session")),
        "ADMIN_EMAILS": _env_list("ADMIN_EMAILS"),
        "ADMIN_USERNAMES": _env_list("ADMIN_USERNAMES"),
        "UPLOAD_FOLDER": os.environ.get("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads")),
        "MAX_CONTENT_LENGTH": 5 * 1024 * 1024,
        "MAIL_SERVER": os.environ.get("MAIL_SERVER"),
        "MAIL_PORT": int(os.environ.get("MAIL_PORT", "587")),
        "MAIL_USE_TLS": _env_bool("MAIL_USE_TLS", True),
        "MAIL_USERNAME": os.environ.get("MAIL_USERNAME"),
        "MAIL_PASSWORD": os.environ.get("MAIL_PASSWORD"),
        "MAIL_DEFAULT_SENDER": os.environ.get("MAIL_DEFAULT_SENDER"),
        "CONTACT_RECIPIENT": os.environ.get("CONTACT_RECIPIENT"),
        "SEED_BOOKS": _env_bool("SEED_BOOKS", True),
        "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO").upper(),
    }


# --- HTML forms can only POST; "?_method=PUT" rewrites the verb ---
class MethodOverrideMiddleware:
    allowed_methods = frozenset(["PUT", "PATCH", "DELETE"])

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        if environ.get("REQUEST_METHOD") == "POST":
            query = parse_qs(environ.get("QUERY_STRING", ""))
            method = query.get("_method", [""])[0].upper()
            if method in self.allowed_methods:
                environ["REQUEST_METHOD"] = method
        return self.app(environ, start_response)


# --- Error pages ---
def register_error_handlers(app):
    @app.errorhandler(404)
    def page_not_found(err):
        return render_template("error.html", message="Page Not Found"), 404

    @app.errorhandler(Exception)
    def handle_error(err):
        if isinstance(err, HTTPException):
            return render_template("error.html", message=err.description or err.name), err.code
        LOG.exception("Unhandled error: %s", err)
        db.session.rollback()
        status = getattr(err, "status", None) or getattr(err, "code", None)
        if not isinstance(status, int) or not 400 <= status < 600:
            status = 500
        return render_template("error.html", message=str(err) or "Something went wrong!"), status


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.update(load_config())
    if test_config:
        app.config.update(test_config)
    app.logger.setLevel(app.config["LOG_LEVEL"])
    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    # Sessions (and the cart in them) live server-side; the cookie only carries the id
    if not app.config.get("SESSION_CACHELIB"):
        app.config["SESSION_CACHELIB"] = FileSystemCache(cache_dir=app.config["SESSION_FILE_DIR"], threshold=1000)
    Session(app)
    app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)

    # Register blueprints (import inside to avoid circular imports)
    from accounts import init_accounts
    from auth import auth_bp
    from shop import shop_bp
    from admin import admin_bp
    init_accounts(app)
    app.register_blueprint(auth_bp)
    app.register_blueprint(shop_bp)
    app.register_blueprint(admin_bp)
    register_error_handlers(app)

    # Ensure tables exist at startup
    from catalog import seed_if_empty
    with app.app_context():
        db.create_all()
        if app.config["SEED_BOOKS"]:
            seed_if_empty()

    LOG.info("Bookstore ready (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"])
    return app
