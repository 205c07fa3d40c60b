"""
Tests for the SoftDeletes capability.
"""

import pytest

from pressmodel import NotFound
from pressmodel.content import Comment, Post, Term


class TestTrashing:
    """Test trashing soft-deletable models."""

    def test_delete_trashes(self, backend):
        """Test that delete() marks the record trashed instead of removing it."""
        post = Post.create(title="Hello")

        assert post.delete() is True

        assert post.is_trashed()
        assert post.exists
        assert backend.is_trashed(Post, post.id)
        assert backend.calls_to("delete")[0].args == (post.id, False)

    def test_trashed_records_are_scoped_out(self, backend):
        """Test that queries skip trashed records."""
        post = Post.create(title="Hello")
        Post.create(title="Other")
        post.delete()

        assert Post.find(post.id) is None
        assert Post.query().count() == 1

    def test_with_trashed(self, backend):
        """Test including trashed records."""
        post = Post.create(title="Hello")
        Post.create(title="Other")
        post.delete()

        assert Post.with_trashed().count() == 2
        assert Post.query().with_trashed().count() == 2

    def test_only_trashed(self, backend):
        """Test selecting only trashed records."""
        post = Post.create(title="Hello")
        Post.create(title="Other")
        post.delete()

        trashed = Post.only_trashed().get()
        assert [item.id for item in trashed] == [post.id]
        assert trashed[0].is_trashed()

    def test_with_trashed_keeps_other_scopes(self, backend):
        """Test that with_trashed only lifts the trash scope."""
        compiled = Post.with_trashed().compile()
        assert compiled.scopes == ("post_type",)
        assert compiled.trashed == "include"

    def test_delete_twice(self, backend):
        """Test that deleting a trashed model does nothing."""
        post = Post.create(title="Hello")
        post.delete()
        backend.reset_calls()

        assert post.delete() is False
        assert backend.calls == []

    def test_delete_unsaved(self, backend):
        """Test that deleting an unsaved model does nothing."""
        assert Post(title="Hello").delete() is False
        assert backend.calls == []


class TestRestoring:
    """Test bringing trashed models back."""

    def test_restore(self, backend):
        """Test that a restored record is visible again."""
        post = Post.create(title="Hello")
        post.delete()

        assert post.restore() is True

        assert not post.is_trashed()
        assert Post.find(post.id) is not None

    def test_restore_live_model(self, backend):
        """Test that restoring a live model does nothing."""
        post = Post.create(title="Hello")
        assert post.restore() is False
        assert backend.calls_to("restore") == []

    def test_restore_loaded_model(self, backend):
        """Test restoring an instance loaded from a trashed record."""
        post = Post.create(title="Hello")
        post.delete()

        loaded = Post.with_trashed().first()
        assert loaded.restore() is True
        assert Post.query().count() == 1

    def test_restore_unsaved(self, backend):
        """Test that an unsaved model cannot be restored."""
        with pytest.raises(NotFound):
            Post(title="Hello").restore()


class TestForceDelete:
    """Test permanent deletion."""

    def test_force_delete(self, backend):
        """Test that force_delete removes the record."""
        post = Post.create(title="Hello")
        post.meta.views = 1

        assert post.force_delete() is True

        assert not post.exists
        assert backend.get(Post, post.id) is None
        assert Post.with_trashed().count() == 0

    def test_force_delete_trashed(self, backend):
        """Test removing a record that is already trashed."""
        post = Post.create(title="Hello")
        post.delete()

        assert post.delete(force=True) is True
        assert Post.only_trashed().count() == 0

    def test_deleted_model_is_unusable(self, backend):
        """Test that a removed model refuses further storage work."""
        post = Post.create(title="Hello")
        post.force_delete()

        assert post.delete() is False
        with pytest.raises(NotFound):
            post.refresh()
        with pytest.raises(NotFound):
            post.save()
        with pytest.raises(NotFound):
            post.restore()

    def test_plain_model_delete_is_permanent(self, backend):
        """Test that types without SoftDeletes are removed directly."""
        term = Term.create(name="News", taxonomy="category")

        assert term.delete() is True

        assert not term.exists
        assert Term.find(term.id) is None
        assert backend.calls_to("delete")[0].args == (term.id, True)


class TestComments:
    """Test comments, which are soft-deletable too."""

    def test_comments_of_post(self, backend):
        """Test querying the comments on a post."""
        post = Post.create(title="Hello")
        Comment.create(post_id=post.id, content="First!")
        Comment.create(post_id=post.id + 100, content="Elsewhere")

        assert [comment.content for comment in post.comments().get()] == ["First!"]

    def test_approve(self, backend):
        """Test approving a comment."""
        comment = Comment.create(post_id=1, content="First!")
        assert Comment.approved().count() == 0

        comment.approve()

        assert Comment.approved().count() == 1

    def test_trashed_comment(self, backend):
        """Test that trashed comments leave the post's comment list."""
        post = Post.create(title="Hello")
        comment = Comment.create(post_id=post.id, content="Spam")
        comment.delete()

        assert post.comments().count() == 0
        assert Comment.with_trashed().count() == 1

    def test_comment_needs_post(self, backend):
        """Test that a comment without a post fails validation."""
        from pressmodel import ValidationError

        with pytest.raises(ValidationError):
            Comment.create(content="Orphaned")
