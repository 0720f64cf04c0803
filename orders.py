# orders.py
from sqlalchemy.exc import SQLAlchemyError
from decimal import Decimal

from core import db, Book, Order, OrderItem, PAYMENT_METHOD
from cart import line_total
from logging_setup import get_logger

LOG = get_logger("bookstore.orders")

# form field -> Order column
CUSTOMER_FIELDS = {
    "name": "customer_name",
    "address": "address",
    "city": "city",
    "postalCode": "postal_code",
    "country": "country",
}


class CheckoutError(Exception):
    pass


class EmptyCartError(CheckoutError):
    def __init__(self):
        super().__init__("Cart is empty. Please add items before checkout.")


class MissingFieldsError(CheckoutError):
    def __init__(self, fields):
        self.fields = fields
        super().__init__("Please fill in: " + ", ".join(fields))


def normalize_payment_method(value):
    # Cash on delivery is the only payment method offered.
    return PAYMENT_METHOD


def place_order(cart, fields, user=None):
    """Persist an order for the cart's entries and return it.

    The total is computed here from the entries, never taken from input.
    Nothing is written when the cart is empty or a delivery field is
    missing; store failures roll back and propagate.
    """
    if len(cart) == 0:
        raise EmptyCartError()

    values = {column: (fields.get(key) or "").strip() for key, column in CUSTOMER_FIELDS.items()}
    missing = [key for key, column in CUSTOMER_FIELDS.items() if not values[column]]
    if missing:
        raise MissingFieldsError(missing)

    total = Decimal("0.00")
    items = []
    for entry in cart:
        total += line_total(entry)
        items.append(OrderItem(
            book_id=entry.get("id"),
            title=entry["title"],
            author=entry.get("author"),
            price=Decimal(str(entry["price"])),
            quantity=int(entry.get("quantity") or 1),
        ))

    order = Order(
        user_id=user.id if user is not None else None,
        payment_method=normalize_payment_method(fields.get("paymentMethod")),
        total_amount=total,
        items=items,
        **values,
    )
    db.session.add(order)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    LOG.info("Order %s placed: %d item(s), total %s", order.id, len(items), total)
    return order


def list_orders():
    """All orders, newest first, with each line item's current book (or None)."""
    orders = Order.query.order_by(Order.order_date.desc(), Order.id.desc()).all()
    book_ids = {item.book_id for o in orders for item in o.items if item.book_id is not None}
    books = {b.id: b for b in Book.query.filter(Book.id.in_(book_ids)).all()} if book_ids else {}
    return [
        {"order": o, "items": [(item, books.get(item.book_id)) for item in o.items]}
        for o in orders
    ]
