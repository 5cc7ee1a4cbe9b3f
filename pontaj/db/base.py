"""
Declarative base shared by every ORM model.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models use classic ``Column`` declarations with plain annotations
    __allow_unmapped__ = True
