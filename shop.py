# shop.py
from flask import Blueprint, render_template, redirect, url_for, request, flash, current_app, send_from_directory

from core import db
from accounts import login_required, current_user
from cart import load_cart, save_cart, has_cart, clear_cart, line_total
from orders import place_order, EmptyCartError, MissingFieldsError
from mailer import send_contact_message
from logging_setup import get_logger
import catalog

LOG = get_logger("bookstore.shop")

shop_bp = Blueprint("shop", __name__)

def _book_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

# --- Routes: Static pages ---
@shop_bp.route("/")
def index():
    return render_template("home.html", books=catalog.list_all()[:4], categories=catalog.categories())

@shop_bp.route("/home")
def home():
    return render_template("home.html", books=catalog.list_all(), categories=catalog.categories())

@shop_bp.route("/about")
def about():
    return render_template("about.html")

@shop_bp.route("/contact", methods=["GET", "POST"])
def contact():
    if request.method == "POST":
        try:
            send_contact_message(
                request.form.get("name", "").strip(),
                request.form.get("email", "").strip(),
                request.form.get("subject", "").strip(),
                request.form.get("message", ""),
            )
        except Exception:
            LOG.exception("Contact message failed")
            flash("Something went wrong. Please try again.", "error")
        else:
            flash("Your message has been sent successfully!", "success")
        return redirect(url_for("shop.contact"))
    return render_template("contact.html")

# --- Routes: Catalog ---
@shop_bp.route("/books")
def books():
    return render_template("books_listing.html", books=catalog.list_all(),
                           selected_category="All", categories=catalog.categories())

@shop_bp.route("/books/category/<category>")
def category(category):
    return render_template("books_listing.html", books=catalog.list_by_category(category),
                           selected_category=category, categories=catalog.categories())

@shop_bp.route("/books/<int:book_id>/details")
def book_details(book_id):
    book = catalog.get_by_id(book_id)
    if not book:
        flash("Book not found", "error")
        return redirect(url_for("shop.books"))
    return render_template("book_details.html", book=book)

@shop_bp.route("/uploads/<path:filename>")
def uploaded_image(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)

# --- Routes: Cart ---
@shop_bp.route("/cart", methods=["POST"])
@login_required
def add_to_cart():
    book_id = _book_id(request.form.get("bookId"))
    book = catalog.get_by_id(book_id) if book_id is not None else None
    if not book:
        return redirect(url_for("shop.books"))
    save_cart(load_cart().add(book))
    return redirect(url_for("shop.cart_view"))

@shop_bp.route("/cart", methods=["GET"])
@login_required
def cart_view():
    cart = load_cart()
    return render_template("cart.html", cart=cart, line_total=line_total, total=cart.total())

@shop_bp.route("/cart/remove", methods=["POST"])
@login_required
def remove_from_cart():
    if not has_cart():
        return redirect(url_for("shop.cart_view"))
    save_cart(load_cart().remove(request.form.get("bookId", "")))
    flash("Book Removed from Cart Successfully", "success")
    return redirect(url_for("shop.cart_view"))

# --- Routes: Checkout ---
@shop_bp.route("/checkout")
@login_required
def checkout():
    cart = load_cart()
    return render_template("checkout.html", cart=cart, line_total=line_total, total=cart.total())

@shop_bp.route("/complete-order", methods=["POST"])
@login_required
def complete_order():
    try:
        place_order(load_cart(), request.form, user=current_user())
    except EmptyCartError as err:
        flash(str(err), "error")
        return redirect(url_for("shop.cart_view"))
    except MissingFieldsError as err:
        flash(str(err), "error")
        return redirect(url_for("shop.checkout"))
    except Exception:
        db.session.rollback()
        LOG.exception("Order Error")
        flash("Something went wrong while placing your order.", "error")
        return redirect(url_for("shop.checkout"))
    clear_cart()
    flash("Order placed successfully!", "success")
    return redirect(url_for("shop.books"))
