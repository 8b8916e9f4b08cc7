"""CLI command modules."""

from .init import init
from .personas import personas
from .serve import serve
from .users import quota, users

__all__ = [
    "init",
    "serve",
    "users",
    "quota",
    "personas",
]
