"""Comments on posts."""

from datetime import datetime
from typing import ClassVar, Optional

from pressmodel.mixins import SoftDeletes, TimestampMixin
from pressmodel.models import Field, Model


class Comment(SoftDeletes, TimestampMixin, Model, table="comments"):
    """A comment, trashed rather than removed on delete()."""

    created_field: ClassVar[str] = "comment_date"
    updated_field: ClassVar[Optional[str]] = None

    comment_ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
    comment_post_ID: Optional[int] = Field(None, required=True, aliases=("post_id",))
    comment_author: str = Field("", aliases=("author",))
    comment_author_email: str = Field("", aliases=("author_email",))
    comment_content: str = Field("", required=True, aliases=("content",))
    comment_approved: str = Field("0", aliases=("approved",))
    comment_date: Optional[datetime] = Field(None, aliases=("date",))
    user_id: int = 0

    @classmethod
    def scope_approved(cls, query):
        return query.where(comment_approved="1")

    @classmethod
    def scope_for_post(cls, query, post_id: int):
        return query.where(comment_post_ID=post_id)

    def approve(self) -> "Comment":
        self.approved = "1"
        self.save()
        return self
