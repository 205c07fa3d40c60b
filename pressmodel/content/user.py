"""
Users and administrators.

User has a fixed schema: assigning an undeclared attribute raises
UnknownAttribute. Admin shares the users table and narrows every query to
administrators.
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import ConfigDict

from pressmodel.hooks import global_scope, on
from pressmodel.mixins import TimestampMixin
from pressmodel.models import Field, Model

ADMINISTRATOR = "administrator"


class User(TimestampMixin, Model, table="users"):
    """
    A registered user.

    Example:
        >>> user = User.create(login="alice", email="alice@example.com")
        >>> user.nickname = "al"
        Traceback (most recent call last):
        UnknownAttribute: user has no attribute 'nickname'
    """

    model_config = ConfigDict(extra="forbid")

    created_field: ClassVar[str] = "user_registered"
    updated_field: ClassVar[Optional[str]] = None

    ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
    user_login: str = Field("", required=True, aliases=("login", "username"))
    user_email: str = Field("", required=True, unique=True, aliases=("email",))
    display_name: str = Field("", aliases=("name",))
    user_registered: Optional[datetime] = Field(None, aliases=("registered",))
    role: str = "subscriber"

    @on("creating")
    def fill_display_name(self):
        if not self.display_name:
            self.display_name = self.user_login

    @classmethod
    def scope_with_role(cls, query, role: str):
        return query.where(role=role)


class Admin(User):
    """A user with the administrator role."""

    @global_scope("role")
    @staticmethod
    def role_scope(query):
        return query.where(role=ADMINISTRATOR)

    @on("creating")
    def assign_role(self):
        self.role = ADMINISTRATOR
