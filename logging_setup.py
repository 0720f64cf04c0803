"""Named loggers for the bookstore.

Every ``bookstore.*`` logger hands its records to the ``bookstore`` parent,
which owns the single stream handler and the level. The level starts from
the ``LOG_LEVEL`` environment variable and is set again from app config by
``configure_logging``.
"""
import logging
import os
import threading

ROOT_NAME = "bookstore"

_LOCK = threading.Lock()
_FORMAT = "[bookstore] %(asctime)s %(levelname)s %(name)s %(message)s"


def _level(level_name):
    return getattr(logging, (level_name or "INFO").upper(), logging.INFO)


def _root_logger():
    with _LOCK:
        root = logging.getLogger(ROOT_NAME)
        if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            root.addHandler(handler)
            root.setLevel(_level(os.environ.get("LOG_LEVEL")))
        root.propagate = False
        return root


def configure_logging(level_name):
    _root_logger().setLevel(_level(level_name))


def get_logger(name=ROOT_NAME):
    root = _root_logger()
    if name == ROOT_NAME:
        return root
    # children keep NOTSET so the parent's level applies
    return logging.getLogger(name)
