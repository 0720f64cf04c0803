"""Uploaded book cover storage.

Covers live in ``UPLOAD_FOLDER`` and are served back by the shop
blueprint. Deletion is best-effort: a cover that cannot be removed is
left behind and logged.
"""
import os
import uuid

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from logging_setup import get_logger

LOG = get_logger("bookstore.images")

ALLOWED_EXT = {"jpg", "jpeg", "png", "gif", "webp"}


def _upload_folder():
    return current_app.config["UPLOAD_FOLDER"]


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXT


def save_image(file):
    """Store an uploaded file and return its ``url`` and ``filename``.

    Returns None when nothing was uploaded.
    """
    if file is None or not file.filename:
        return None
    if not allowed_file(file.filename):
        raise ValueError(f"Unsupported image type: {file.filename}")

    filename = f"{uuid.uuid4().hex}_{secure_filename(file.filename)}"
    folder = _upload_folder()
    os.makedirs(folder, exist_ok=True)
    file.save(os.path.join(folder, filename))
    LOG.info("Stored image %s", filename)
    return {"url": url_for("shop.uploaded_image", filename=filename), "filename": filename}


def delete_image(filename):
    path = os.path.join(_upload_folder(), secure_filename(filename))
    try:
        os.remove(path)
    except OSError as err:
        LOG.warning("Image delete warning for %s: %s", filename, err)
        return False
    LOG.info("Deleted image %s", filename)
    return True
