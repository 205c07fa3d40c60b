"""
SoftDeletes capability for reversible deletion.

Deleting a soft-deletable model marks its record trashed instead of removing
it. Trashed records are left out of queries by a global scope until
restored.
"""

import logging

from pressmodel.exceptions import NotFound
from pressmodel.hooks import global_scope
from pressmodel.query.base import TRASHED_SCOPE
from pressmodel.registry import registry

logger = logging.getLogger(__name__)


class SoftDeletes:
    """
    Mixin that makes delete() reversible.

    Example:
        >>> class Comment(SoftDeletes, Model):
        ...     comment_ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
        ...     comment_content: str = Field("", aliases=("content",))
        >>>
        >>> comment = Comment.create(content="First!")
        >>> comment.delete()          # fires trashing/trashed
        >>> Comment.find(comment.id)  # None: trashed records are scoped out
        >>> Comment.with_trashed().count()
        1
        >>> comment.restore()         # fires restoring/restored
        >>> comment.force_delete()    # fires deleting/deleted, removes the record
    """

    soft_deletes = True

    @global_scope(TRASHED_SCOPE)
    @staticmethod
    def soft_delete_scope(query):
        return query.exclude_trashed()

    def is_trashed(self) -> bool:
        return self._trashed

    def restore(self) -> bool:
        """
        Bring a trashed record back.

        Returns:
            True if the record was restored, False if it was not trashed

        Raises:
            OperationVetoed: If a restoring callback rejects
            NotFound: If the record was permanently deleted
        """
        cls = type(self)
        identity = self._stored_identity()
        if identity is None:
            raise NotFound(f"{cls.__name__} has not been saved")
        if not self._trashed:
            return False

        registry.events.fire(cls, "restoring", self)
        cls._get_backend().restore(cls, identity)
        self._trashed = False
        logger.info(f"Restored {cls.__name__} {identity}")
        registry.events.fire(cls, "restored", self)
        return True

    def force_delete(self) -> bool:
        """Remove the record permanently, trashed or not."""
        return self.delete(force=True)

    @classmethod
    def with_trashed(cls):
        """Query including trashed records."""
        return cls.query().with_trashed()

    @classmethod
    def only_trashed(cls):
        """Query returning trashed records only."""
        return cls.query().only_trashed()
