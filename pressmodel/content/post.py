"""
Posts and pages.

Both live in the posts table and are told apart by post_type, which a global
scope adds to every query.
"""

from datetime import datetime
from typing import ClassVar, Optional

from pressmodel.content.comment import Comment
from pressmodel.content.term import Term
from pressmodel.content.utils import slugify
from pressmodel.hooks import global_scope, on
from pressmodel.mixins import SoftDeletes, TimestampMixin
from pressmodel.models import Field, Model


class Post(SoftDeletes, TimestampMixin, Model, table="posts"):
    """
    A post.

    Subclasses become custom post types: their model_type is stored as
    post_type and scopes their queries.

    Example:
        >>> post = Post(title="Example Title", terms=[news])
        >>> post.meta.type = "video"
        >>> post.save()
        >>> Post.of_type("video").published().get()
    """

    created_field: ClassVar[str] = "post_date"
    updated_field: ClassVar[str] = "post_modified"
    term_model: ClassVar[Optional[type[Model]]] = Term

    ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
    post_title: str = Field("", required=True, aliases=("title",))
    post_content: str = Field("", aliases=("content",))
    post_excerpt: str = Field("", aliases=("excerpt",))
    post_status: str = Field("draft", aliases=("status",))
    post_name: str = Field("", aliases=("slug",))
    post_type: str = Field("", aliases=("type",))
    post_author: int = Field(0, aliases=("author",))
    post_parent: int = Field(0, aliases=("parent",))
    post_date: Optional[datetime] = Field(None, aliases=("date",))
    post_modified: Optional[datetime] = Field(None, aliases=("modified",))

    @on("creating")
    def fill_defaults(self):
        if not self.post_type:
            self.post_type = type(self).model_type
        if not self.post_name:
            self.post_name = slugify(self.post_title)

    @global_scope("post_type")
    @staticmethod
    def post_type_scope(query):
        return query.where(post_type=query.model_class.model_type)

    @classmethod
    def scope_published(cls, query):
        return query.where(post_status="publish")

    @classmethod
    def scope_with_status(cls, query, status: str):
        return query.where(post_status=status)

    @classmethod
    def scope_of_type(cls, query, type_: str):
        """Posts whose "type" meta matches, e.g. Post.of_type("video")."""
        return query.where_meta(type=type_)

    @classmethod
    def scope_by_author(cls, query, author_id: int):
        return query.where(post_author=author_id)

    def comments(self):
        """Query for the comments on this post."""
        return Comment.for_post(self.get_key())


class Page(Post, model_type="page"):
    """A page: a post with its own post_type."""

    @classmethod
    def scope_top_level(cls, query):
        return query.where(post_parent=0)
