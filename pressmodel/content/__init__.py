"""
Content types built on the model core.

Posts, pages, terms, users and comments, each stored in its own table.
"""

from pressmodel.content.comment import Comment
from pressmodel.content.post import Page, Post
from pressmodel.content.term import Term
from pressmodel.content.user import ADMINISTRATOR, Admin, User
from pressmodel.content.utils import slugify

__all__ = [
    "Post",
    "Page",
    "Term",
    "User",
    "Admin",
    "ADMINISTRATOR",
    "Comment",
    "slugify",
]
