"""
TimestampMixin for automatic creation and modification times.

Provides automatic timestamp management for models.
"""

from datetime import datetime

from pressmodel.hooks import on


class TimestampMixin:
    """
    Mixin that stamps creation and modification times.

    - created_field: set once when the record is created
    - updated_field: set on creation and on every update

    Field names are configurable per type. The model declares the fields
    itself (or accepts them as unknown attributes).

    Example:
        >>> class Post(TimestampMixin, Model):
        ...     created_field: ClassVar[str] = "post_date"
        ...     updated_field: ClassVar[str] = "post_modified"
        ...     post_date: Optional[datetime] = None
        ...     post_modified: Optional[datetime] = None
        >>>
        >>> post = Post.create(title="Hello")
        >>> post.post_date is not None
        True
    """

    created_field = "created_at"
    # None disables the modification time
    updated_field = "updated_at"

    @on("creating")
    def _stamp_created(self):
        """Set both timestamps on a new record."""
        now = datetime.now()
        if self.get_attribute(self.created_field) is None:
            self.set_attribute(self.created_field, now)
        if self.updated_field:
            self.set_attribute(self.updated_field, now)

    @on("updating")
    def _stamp_updated(self):
        """Refresh the modification time."""
        if self.updated_field:
            self.set_attribute(self.updated_field, datetime.now())
