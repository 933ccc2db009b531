"""Shared pytest fixtures for the bookshelf tests."""

from .core import *  # noqa: F401,F403
from .services import *  # noqa: F401,F403
