from .category import Category
from .content import Content

__all__ = [
    "Category",
    "Content",
]
