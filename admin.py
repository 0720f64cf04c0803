# admin.py
from flask import Blueprint, render_template, redirect, url_for, request, flash

from core import db, User
from accounts import admin_required
from orders import list_orders
from logging_setup import get_logger
import catalog

LOG = get_logger("bookstore.admin")

admin_bp = Blueprint("admin", __name__)

def _create(failure_message):
    try:
        catalog.create_book(request.form, request.files.get("image"))
    except Exception as err:
        db.session.rollback()
        LOG.exception("Book Add Error")
        flash(failure_message.format(err=err), "error")
        return redirect(url_for("admin.new_book"))
    return None

@admin_bp.route("/new", methods=["GET"])
@admin_required
def new_book():
    return render_template("new.html", categories=catalog.categories())

@admin_bp.route("/new", methods=["POST"])
@admin_required
def create_from_form():
    failed = _create("Failed to add book. Please try again.")
    if failed:
        return failed
    flash("New book added successfully!", "success")
    return redirect(url_for("shop.books"))

@admin_bp.route("/books", methods=["POST"])
@admin_required
def create_book():
    failed = _create("Error adding book: {err}")
    if failed:
        return failed
    flash("Book Added Successfully", "success")
    return redirect(url_for("shop.books"))

@admin_bp.route("/books/<int:book_id>/edit")
@admin_required
def edit_book(book_id):
    book = catalog.get_by_id(book_id)
    if not book:
        flash("Book not found", "error")
        return redirect(url_for("shop.books"))
    return render_template("edit.html", book=book, categories=catalog.categories())

@admin_bp.route("/books/<int:book_id>", methods=["PUT"])
@admin_required
def update_book(book_id):
    book = catalog.get_by_id(book_id)
    if not book:
        flash("Book not found", "error")
        return redirect(url_for("shop.books"))
    try:
        catalog.update_book(book, request.form, request.files.get("image"))
    except Exception as err:
        db.session.rollback()
        LOG.exception("Book Update Error")
        flash(f"Error updating book: {err}", "error")
        return redirect(url_for("admin.edit_book", book_id=book_id))
    flash("Book Updated Successfully", "success")
    return redirect(url_for("shop.books"))

@admin_bp.route("/books/<int:book_id>", methods=["DELETE"])
@admin_required
def delete_book(book_id):
    book = catalog.get_by_id(book_id)
    if not book:
        flash("Book not found", "error")
        return redirect(url_for("shop.books"))
    catalog.delete_book(book)
    flash("Book Deleted Successfully", "success")
    return redirect(url_for("shop.books"))

@admin_bp.route("/dashboard")
@admin_required
def dashboard():
    try:
        users = User.query.order_by(User.id).all()
        books = catalog.list_all()
        orders = list_orders()
    except Exception:
        LOG.exception("Dashboard load failed")
        flash("Unable to load dashboard data.", "error")
        return redirect(url_for("shop.books"))
    return render_template("dashboard.html", users=users, books=books, orders=orders)
