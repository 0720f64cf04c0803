# cart.py
from flask import session
from decimal import Decimal

SESSION_CART_KEY = "cart"


class Cart:
    """Book snapshots picked in one session.

    Values are never mutated in place: ``add`` and ``remove`` return a new
    cart which the caller saves back to the session.
    """

    def __init__(self, entries=None):
        self.entries = list(entries or [])

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def add(self, book):
        # no merging: the same book twice is two entries
        return Cart(self.entries + [book.snapshot()])

    def remove(self, book_id):
        book_id = str(book_id)
        return Cart([e for e in self.entries if str(e["id"]) != book_id])

    def total(self):
        total = Decimal("0.00")
        for entry in self.entries:
            total += line_total(entry)
        return total


def line_total(entry):
    return Decimal(str(entry["price"])) * int(entry.get("quantity") or 1)


# --- Session storage ---
def has_cart():
    return SESSION_CART_KEY in session

def load_cart():
    return Cart(session.get(SESSION_CART_KEY))

def save_cart(cart):
    session[SESSION_CART_KEY] = list(cart.entries)

def clear_cart():
    session[SESSION_CART_KEY] = []
