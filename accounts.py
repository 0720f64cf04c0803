# accounts.py
from flask import current_app, flash, g, redirect, session, url_for
from sqlalchemy.exc import IntegrityError
from functools import wraps

from core import db, User, Role
from logging_setup import get_logger

LOG = get_logger("bookstore.accounts")

SESSION_USER_KEY = "user_id"


class RegistrationError(Exception):
    """Raised when an account cannot be created."""


# --- Registration / credentials ---
def role_for(username, email):
    admin_emails = current_app.config.get("ADMIN_EMAILS") or []
    admin_usernames = current_app.config.get("ADMIN_USERNAMES") or []
    if email in admin_emails or username in admin_usernames:
        return Role.ADMIN
    return Role.USER

def register(username, email, password):
    username = (username or "").strip()
    email = (email or "").strip()
    if not username or not email or not password:
        raise RegistrationError("Username, email and password are required")

    user = User(username=username, email=email, role=role_for(username, email))
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as err:
        db.session.rollback()
        LOG.info("Registration rejected for %r: %s", username, err.orig)
        raise RegistrationError("A user with the given username or email is already registered") from err
    LOG.info("Registered %s (role=%s)", user.username, user.role.value)
    return user

def authenticate(username, password):
    user = User.query.filter_by(username=(username or "").strip()).first()
    if user is None or not user.check_password(password or ""):
        return None
    return user


# --- Session lifecycle ---
def login_user(user):
    session.clear()
    session.permanent = True
    session[SESSION_USER_KEY] = user.id
    g.current_user = user

def logout_user():
    session.pop(SESSION_USER_KEY, None)
    session.pop("cart", None)
    g.current_user = None

def current_user():
    if "current_user" not in g:
        user_id = session.get(SESSION_USER_KEY)
        g.current_user = db.session.get(User, user_id) if user_id is not None else None
    return g.current_user


# --- Gates: authentication first, then role ---
def require_login():
    if current_user() is not None:
        return None
    flash("You must be logged in to perform this action.", "error")
    return redirect(url_for("auth.login"))

def require_admin():
    denied = require_login()
    if denied:
        return denied
    if current_user().is_admin:
        return None
    flash("You must be an admin to perform this action.", "error")
    return redirect(url_for("shop.books"))

def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        denied = require_login()
        if denied:
            return denied
        return view(*args, **kwargs)
    return wrapped

def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        denied = require_admin()
        if denied:
            return denied
        return view(*args, **kwargs)
    return wrapped


def init_accounts(app):
    @app.context_processor
    def inject_current_user():
        return {"current_user": current_user()}
