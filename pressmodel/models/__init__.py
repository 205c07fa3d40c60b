"""Model definitions for pressmodel."""

from pressmodel.models.base import Model
from pressmodel.models.fields import Field
from pressmodel.models.attributes import AliasTable, AttributeStore
from pressmodel.models.meta import MetaAccessor, MetaBuffer
from pressmodel.models.terms import TermRelations

__all__ = [
    "Model",
    "Field",
    "AliasTable",
    "AttributeStore",
    "MetaAccessor",
    "MetaBuffer",
    "TermRelations",
]
