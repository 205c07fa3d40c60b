"""
Tests for global and local scopes.
"""

import pytest

from pressmodel import ScopeNotFound
from pressmodel.content import ADMINISTRATOR, Admin, Page, Post, Term, User


class TestGlobalScopes:
    """Test scopes applied to every query."""

    def test_compiled_scopes_in_order(self, backend):
        """Test that global scopes apply supertype first, then local scopes."""
        compiled = Post.of_type("video").compile()

        assert compiled.scopes == ("soft_deletes", "post_type", "of_type")
        assert compiled.meta_conditions() == {"type": "video"}
        assert compiled.conditions() == {"post_type": "post"}
        assert compiled.trashed == "exclude"
        assert compiled.table == "posts"

    def test_post_type_scope_separates_posts_and_pages(self, backend):
        """Test that posts and pages share a table but not queries."""
        Post.create(title="A post")
        Page.create(title="A page")

        assert [post.title for post in Post.all()] == ["A post"]
        assert [page.title for page in Page.all()] == ["A page"]
        assert Post.find(2) is None

    def test_without_global_scope(self, backend):
        """Test skipping one global scope for a single query."""
        Post.create(title="A post")
        Page.create(title="A page")

        assert Post.without_global_scope("post_type").count() == 2
        assert Post.query().count() == 1

    def test_without_all_global_scopes(self, backend):
        """Test skipping every global scope."""
        post = Post.create(title="A post")
        Page.create(title="A page")
        post.delete()

        assert Post.without_global_scopes().count() == 2
        assert Post.without_global_scopes().compile().scopes == ()

    def test_add_global_scope(self, backend):
        """Test registering a global scope at runtime."""
        Post.create(title="Draft")
        Post.create(title="Live", status="publish")

        Post.add_global_scope("published_only", lambda query: query.where(status="publish"))

        assert [post.title for post in Post.all()] == ["Live"]
        assert Post.query().compile().scopes == ("soft_deletes", "post_type", "published_only")

    def test_add_global_scope_as_decorator(self, backend):
        """Test registering a global scope with a decorator."""
        Post.create(title="Draft")

        @Post.add_global_scope("nothing")
        def nothing(query):
            return query.where(title="no such title")

        assert Post.query().count() == 0
        assert callable(nothing)

    def test_reregistering_replaces_in_place(self, backend):
        """Test that a re-registered name keeps its position."""
        Post.add_global_scope("post_type", lambda query: query.where(post_type="page"))

        compiled = Post.query().compile()

        assert compiled.scopes == ("soft_deletes", "post_type")
        assert compiled.conditions() == {"post_type": "page"}

    def test_remove_global_scope(self, backend):
        """Test deregistering a global scope."""
        Post.create(title="A post")
        Page.create(title="A page")

        assert Post.remove_global_scope("post_type") is True
        assert Post.query().count() == 2
        assert Post.remove_global_scope("post_type") is False

    def test_scope_on_subtype(self, backend):
        """Test that Admin narrows the users table to administrators."""
        User.create(login="bob", email="bob@example.com")
        admin = Admin.create(login="root", email="root@example.com")

        assert admin.role == ADMINISTRATOR
        assert [user.login for user in Admin.all()] == ["root"]
        assert User.query().count() == 2
        assert User.with_role(ADMINISTRATOR).count() == 1

    def test_custom_boot_registers_scope(self, backend):
        """Test that a boot() classmethod can add scopes."""
        from typing import Optional
        from pressmodel import Field, Model

        class Featured(Model, table="featured"):
            ID: Optional[int] = Field(None, primary_key=True)
            name: str = ""
            featured: bool = False

            @classmethod
            def boot(cls):
                cls.add_global_scope("featured", lambda query: query.where(featured=True))

        Featured.create(name="plain")
        Featured.create(name="star", featured=True)

        assert [item.name for item in Featured.all()] == ["star"]


class TestLocalScopes:
    """Test opt-in scopes."""

    def test_class_level_invocation(self, backend):
        """Test calling a local scope on the model class."""
        Post.create(title="Draft")
        Post.create(title="Live", status="publish")

        assert [post.title for post in Post.published().get()] == ["Live"]

    def test_scope_with_arguments(self, backend):
        """Test passing arguments to a local scope."""
        Post.create(title="Draft")
        Post.create(title="Pending", status="pending")

        assert Post.with_status("pending").count() == 1
        assert Post.by_author(0).count() == 2

    def test_chained_scopes(self, backend):
        """Test chaining local scopes with query methods."""
        Post.create(title="Live video", status="publish", meta={"type": "video"})
        Post.create(title="Draft video", meta={"type": "video"})
        Post.create(title="Live text", status="publish", meta={"type": "text"})

        results = Post.of_type("video").published().get()
        assert [post.title for post in results] == ["Live video"]

        results = Post.query().where(author=0).of_type("video").order_by("title").get()
        assert [post.title for post in results] == ["Draft video", "Live video"]

    def test_scope_method(self, backend):
        """Test applying a local scope by name."""
        Post.create(title="Live", status="publish")
        assert Post.query().scope("with_status", "publish").count() == 1

    def test_subtype_scope(self, backend):
        """Test a scope declared on a subtype."""
        Page.create(title="Top")
        Page.create(title="Child", parent=1)

        assert [page.title for page in Page.top_level().get()] == ["Top"]

    def test_inherited_scope(self, backend):
        """Test that subtypes inherit local scopes."""
        Page.create(title="Live", status="publish")
        assert Page.published().count() == 1

    def test_add_local_scope(self, backend):
        """Test registering a local scope without a prefixed method."""
        Term.create(name="News", taxonomy="category")
        Term.create(name="python", taxonomy="post_tag")

        Term.add_local_scope("tags", lambda query: query.where(taxonomy="post_tag"))

        assert [term.name for term in Term.tags().get()] == ["python"]

    def test_unknown_scope_on_query(self, backend):
        """Test that an unknown scope raises ScopeNotFound."""
        with pytest.raises(ScopeNotFound):
            Post.query().no_such_scope()

        with pytest.raises(ScopeNotFound):
            Post.query().scope("no_such_scope")

    def test_scope_not_found_names_the_scope(self, backend):
        """Test that ScopeNotFound carries the model and scope names."""
        with pytest.raises(ScopeNotFound) as exc_info:
            Post.query().no_such_scope()
        assert exc_info.value.model_type == "Post"
        assert exc_info.value.name == "no_such_scope"
        assert "no_such_scope" in str(exc_info.value)

    def test_unknown_scope_on_class(self):
        """Test that an unknown class attribute is still an AttributeError."""
        with pytest.raises(AttributeError):
            Post.no_such_scope

    def test_compile_does_not_mutate_builder(self, backend):
        """Test that compiling twice gives the same result."""
        query = Post.published()
        first = query.compile()
        second = query.compile()

        assert first == second
        assert first.conditions() == {"post_type": "post", "post_status": "publish"}


class TestScopesWithOrConditions:
    """Test that or_() never widens a query past its scopes."""

    def test_or_stays_inside_post_type_scope(self, backend):
        """Test that an OR query on posts never returns pages."""
        Post.create(title="Draft post", status="draft")
        Post.create(title="Live post", status="publish")
        Page.create(title="Draft page", status="draft")

        results = Post.where(status="draft").or_(status="publish").get()

        assert sorted(post.title for post in results) == ["Draft post", "Live post"]
        assert all(post.post_type == "post" for post in results)

    def test_or_stays_inside_role_scope(self, backend):
        """Test that an OR query on admins never returns plain users."""
        User.create(login="alice", email="alice@example.com")
        Admin.create(login="root", email="root@example.com")

        results = Admin.where(login="alice").or_(login="root").get()

        assert [admin.login for admin in results] == ["root"]
        assert [admin.role for admin in results] == [ADMINISTRATOR]

    def test_or_stays_inside_local_scope(self, backend):
        """Test that a chained local scope constrains every OR branch."""
        Post.create(title="A", status="draft")
        Post.create(title="B", status="publish")
        Post.create(title="C", status="publish")

        results = Post.where(title="A").or_(title="B").published().get()

        assert [post.title for post in results] == ["B"]

    def test_scope_with_or_is_self_contained(self, backend):
        """Test that a scope's own OR does not leak into the caller's filters."""
        Post.create(title="X", status="draft")
        Post.create(title="X", status="future")
        Post.create(title="Y", status="publish")

        Post.add_global_scope("visible", lambda query: query.where(status="publish").or_(status="future"))

        assert [post.status for post in Post.where(title="X").get()] == ["future"]
        assert Post.where(title="Y").or_(title="X").count() == 2

    def test_scope_conditions_compiled_apart(self, backend):
        """Test that scope conditions are kept out of the caller's filters."""
        compiled = Post.where(status="draft").or_(status="publish").of_type("video").compile()

        assert compiled.filters == (
            ("and", {"post_status": "draft"}),
            ("or", {"post_status": "publish"}),
        )
        assert compiled.scope_filters == ((("and", {"post_type": "post"}),),)
        assert compiled.meta_filters == ()
        assert compiled.scope_meta_filters == ((("and", {"type": "video"}),),)
