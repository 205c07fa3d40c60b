"""
Built-in capabilities for pressmodel.

Provides common functionality that can be mixed into models.
"""

from pressmodel.mixins.soft_deletes import SoftDeletes
from pressmodel.mixins.timestamp import TimestampMixin

__all__ = [
    'SoftDeletes',
    'TimestampMixin',
]
