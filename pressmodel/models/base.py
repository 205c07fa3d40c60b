"""
Base model class for pressmodel.

Provides an ActiveRecord-style interface using Pydantic for validation,
composed from the attribute store, meta buffer, term relations and the
process-wide registry of lifecycle callbacks and scopes.
"""

import inspect
import logging
from typing import Any, Callable, ClassVar, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic._internal._model_construction import ModelMetaclass

from pressmodel.config import get_settings
from pressmodel.events import EVENTS
from pressmodel.exceptions import NotFound, UnknownAttribute, ValidationError
from pressmodel.models.attributes import AliasTable, AttributeStore
from pressmodel.models.fields import aliases_of, is_primary_key, is_required
from pressmodel.models.meta import MetaAccessor, MetaBuffer
from pressmodel.models.terms import TermRelations
from pressmodel.query.base import QueryBuilder
from pressmodel.registry import registry

if TYPE_CHECKING:
    from pressmodel.backends.base import Backend, Record

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (str, list, dict, tuple, set)) and len(value) == 0


class ModelType(ModelMetaclass):
    """
    Metaclass for models.

    Resolves unknown class attributes to local scopes, so Post.published()
    is Post.query().published().
    """

    def __getattr__(cls, name: str) -> Any:
        if name.startswith('_') or name.startswith('model_'):
            return super().__getattr__(name)

        # Scopes registered from boot() only exist once the class is complete
        if vars(cls).get('__pydantic_complete__', False):
            registry.boot(cls)

        if registry.scopes.has_local_scope(cls, name):
            return getattr(cls.query(), name)
        return super().__getattr__(name)


def _event_registrar(event: str) -> Any:
    def register(cls: type["Model"], callback: Optional[Callable[[Any], Any]] = None) -> Any:
        return cls.listen(event, callback)
    register.__name__ = event
    register.__doc__ = f"Register a '{event}' callback for this model type (usable as a decorator)."
    return classmethod(register)


class Model(BaseModel, metaclass=ModelType):
    """
    Base model class for pressmodel.

    Example:
        >>> class Post(Model, model_backend=InMemoryBackend(), table="posts"):
        ...     ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
        ...     post_title: str = Field("", required=True, aliases=("title",))
        ...     post_status: str = Field("draft", aliases=("status",))
        ...
        >>> post = Post(title="Hello")
        >>> post.meta.views = 0
        >>> post.save()
        >>> post.post_title
        'Hello'
        >>> Post.where(status="draft").count()
        1
    """

    # Pydantic configuration
    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        arbitrary_types_allowed=True,  # Allow custom types
        extra="allow",  # Unknown attributes are kept; "forbid" fixes the schema
    )

    # Backend configuration
    model_backend: ClassVar[Optional["Backend"]] = None

    # Type identifier, defaults to the lowercased class name
    model_type: ClassVar[str] = "model"

    # Storage collection, defaults to model_type; subtypes inherit it
    table: ClassVar[Optional[str]] = None

    # alias -> canonical field name, merged with supertypes and Field(aliases=...)
    aliases: ClassVar[dict[str, str]] = {}
    alias_map: ClassVar[AliasTable] = AliasTable()

    # Set by the SoftDeletes capability
    soft_deletes: ClassVar[bool] = False

    # Model type of associated terms; None disables term relationships
    term_model: ClassVar[Optional[type["Model"]]] = None

    # Instance state
    _is_persisted: bool = False
    _trashed: bool = False
    _deleted: bool = False
    _attributes: Optional[AttributeStore] = None
    _meta_buffer: Optional[MetaBuffer] = None
    _terms: Optional[TermRelations] = None

    def __init_subclass__(
        cls,
        model_backend: Optional["Backend"] = None,
        model_type: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs: Any,
    ):
        """
        Apply per-type configuration given as class parameters.

        Args:
            model_backend: Backend for this model (alternative to the ClassVar)
            model_type: Type identifier
            table: Storage collection name
            **kwargs: Additional arguments passed to parent
        """
        super().__init_subclass__(**kwargs)

        # Support class parameter pattern: class Post(Model, model_backend=InMemoryBackend())
        if model_backend is not None:
            cls.model_backend = model_backend

        if model_type is not None:
            cls.model_type = model_type
        elif "model_type" not in cls.__dict__:
            cls.model_type = cls.__name__.lower()

        if table is not None:
            cls.table = table

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        """Build the alias table once fields are known."""
        super().__pydantic_init_subclass__(**kwargs)

        aliases: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            aliases.update(vars(klass).get("aliases") or {})
        for name, field_info in cls.model_fields.items():
            for alias in aliases_of(field_info):
                aliases[alias] = name
        cls.alias_map = AliasTable(aliases)

    def __init__(self, **data: Any):
        """
        Create an unsaved instance.

        Keys may be aliases or canonical names. When the type supports terms,
        a "terms" key is taken as the initial term assignment.
        """
        cls = type(self)
        registry.boot(cls)

        terms = data.pop("terms", None) if cls.term_model is not None else None

        values: dict[str, Any] = {}
        for name, value in data.items():
            key = cls.alias_map.resolve(name)
            if key not in cls.model_fields and cls.is_fixed_schema():
                raise UnknownAttribute(cls.model_type, name)
            values[key] = value

        try:
            super().__init__(**values)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, f"Invalid {cls.__name__}") from e

        self._attributes = AttributeStore(self)
        self._meta_buffer = MetaBuffer(self)
        self._terms = TermRelations(self)
        self._attributes.mark_dirty(*values)

        if terms is not None:
            if isinstance(terms, dict):
                for taxonomy, items in terms.items():
                    self.set_terms(items, taxonomy)
            else:
                self.set_terms(terms)

    # === Attribute access ===

    def __getattr__(self, name: str) -> Any:
        if not name.startswith('_'):
            canonical = type(self).alias_map.resolve(name)
            if canonical != name:
                return self.get_attribute(canonical)
        return super().__getattr__(name)  # type: ignore[misc]

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            super().__setattr__(name, value)
            return

        cls = type(self)
        if name in cls.__class_vars__:
            raise AttributeError(f"'{name}' is a class variable of {cls.__name__}")
        if isinstance(inspect.getattr_static(cls, name, None), property):
            raise AttributeError(f"'{cls.__name__}' attribute '{name}' is read-only")
        self.set_attribute(name, value)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Read an attribute by alias or canonical name."""
        return self._attributes.get(name, default)  # type: ignore[union-attr]

    def set_attribute(self, name: str, value: Any) -> "Model":
        """
        Write an attribute by alias or canonical name and mark it dirty.

        Raises:
            UnknownAttribute: If the type has a fixed schema that lacks the field
            ValidationError: If the value fails field validation
        """
        self._attributes.set(name, value)  # type: ignore[union-attr]
        return self

    def fill(self, attributes: dict[str, Any]) -> "Model":
        for name, value in attributes.items():
            self.set_attribute(name, value)
        return self

    def is_dirty(self, name: Optional[str] = None) -> bool:
        return self._attributes.is_dirty(name)  # type: ignore[union-attr]

    def get_dirty(self) -> dict[str, Any]:
        """Dirty canonical attributes and their current values."""
        return self._attributes.dirty_payload()  # type: ignore[union-attr]

    def get_key(self) -> Any:
        return self.get_attribute(type(self).key_name())

    @property
    def exists(self) -> bool:
        """True once saved, until permanently deleted."""
        return self._is_persisted and not self._deleted

    @property
    def meta(self) -> MetaAccessor:
        return MetaAccessor(self._meta_buffer)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        """Canonical attributes, unknown (extra) ones included."""
        return self.model_dump()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Model) or type(other) is not type(self):
            return NotImplemented
        key = self.get_key()
        if key is None or other.get_key() is None:
            return self is other
        return bool(key == other.get_key())

    # === Class configuration ===

    @classmethod
    def key_name(cls) -> str:
        """Canonical name of the identity field."""
        for name, field_info in cls.model_fields.items():
            if is_primary_key(field_info):
                return name
        return "id"

    @classmethod
    def storage_table(cls) -> str:
        return cls.table or cls.model_type

    @classmethod
    def is_fixed_schema(cls) -> bool:
        return cls.model_config.get("extra") != "allow"

    @classmethod
    def _get_backend(cls) -> "Backend":
        """
        Get the backend for this model.

        Returns:
            Backend instance

        Raises:
            RuntimeError: If neither the model nor the settings provide one
        """
        backend = cls.model_backend
        if backend is None:
            backend = get_settings().default_backend
        if backend is None:
            raise RuntimeError(
                f"No backend configured for {cls.__name__}. "
                f"Set model_backend on the class or configure(default_backend=...)."
            )
        return backend  # type: ignore[no-any-return]

    @classmethod
    def boot(cls) -> None:
        """
        One-time initialization hook, run once per process when the type boots.

        Override to register callbacks or scopes:
            >>> @classmethod
            ... def boot(cls):
            ...     cls.add_global_scope("published", lambda q: q.where(status="publish"))
        """
        pass

    # === Lifecycle registration ===

    @classmethod
    def listen(cls, event: str, callback: Optional[Callable[[Any], Any]] = None) -> Any:
        """
        Register a lifecycle callback for this type and its subtypes.

        Without a callback, returns a decorator.

        Raises:
            ValueError: If the event name is unknown
        """
        registry.boot(cls)
        if callback is None:
            def decorator(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
                return registry.events.register(cls, event, func)
            return decorator
        return registry.events.register(cls, event, callback)

    saving = _event_registrar("saving")
    saved = _event_registrar("saved")
    creating = _event_registrar("creating")
    created = _event_registrar("created")
    updating = _event_registrar("updating")
    updated = _event_registrar("updated")
    deleting = _event_registrar("deleting")
    deleted = _event_registrar("deleted")
    trashing = _event_registrar("trashing")
    trashed = _event_registrar("trashed")
    restoring = _event_registrar("restoring")
    restored = _event_registrar("restored")

    @classmethod
    def observe(cls, observer: Any) -> Any:
        """
        Register every method of an observer named after an event.

        Example:
            >>> class PostObserver:
            ...     def created(self, post): ...
            ...     def deleting(self, post): return post.status != "publish"
            >>> Post.observe(PostObserver())
        """
        registry.boot(cls)
        if isinstance(observer, type):
            observer = observer()
        for event in sorted(EVENTS):
            handler = getattr(observer, event, None)
            if callable(handler):
                registry.events.register(cls, event, handler)
        return observer

    # === Scopes ===

    @classmethod
    def add_global_scope(cls, name: str, predicate: Optional[Callable[..., Any]] = None) -> Any:
        """
        Register a query modifier applied to every query for this type.

        Without a predicate, returns a decorator.
        """
        registry.boot(cls)
        if predicate is None:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                registry.scopes.add_global_scope(cls, name, func)
                return func
            return decorator
        registry.scopes.add_global_scope(cls, name, predicate)
        return predicate

    @classmethod
    def remove_global_scope(cls, name: str) -> bool:
        """Deregister a global scope registered on this type, process-wide."""
        return registry.scopes.remove_global_scope(cls, name)

    @classmethod
    def add_local_scope(cls, name: str, scope: Callable[..., Any]) -> None:
        registry.scopes.add_local_scope(cls, name, scope)

    @classmethod
    def without_global_scope(cls, name: str) -> QueryBuilder:
        """Query that skips one named global scope."""
        return cls.query().without_global_scope(name)

    @classmethod
    def without_global_scopes(cls, *names: str) -> QueryBuilder:
        return cls.query().without_global_scopes(*names)

    # === Queries ===

    @classmethod
    def query(cls) -> QueryBuilder:
        """
        Create a query builder for this model.

        Example:
            >>> Post.query().where(status="publish").order_by("-date").get()
        """
        registry.boot(cls)
        return QueryBuilder(cls)

    @classmethod
    def where(cls, **conditions: Any) -> QueryBuilder:
        return cls.query().where(**conditions)

    @classmethod
    def all(cls) -> list["Model"]:
        return cls.query().get()

    @classmethod
    def find(cls, identity: Any) -> Optional["Model"]:
        """
        Find a record by identity, or None.

        Global scopes apply, so a trashed record is not found unless the
        type's soft delete scope is excluded.
        """
        return cls.query().where(**{cls.key_name(): identity}).first()

    @classmethod
    def get(cls, identity: Any) -> "Model":
        """
        Get a record by identity.

        Raises:
            NotFound: If no record matches
        """
        instance = cls.find(identity)
        if instance is None:
            raise NotFound(f"{cls.__name__} {identity} not found")
        return instance

    @classmethod
    def find_by(cls, **conditions: Any) -> Optional["Model"]:
        return cls.query().where(**conditions).first()

    @classmethod
    def create(cls, *, meta: Optional[dict[str, Any]] = None, **attributes: Any) -> "Model":
        """
        Create and save a new instance.

        Example:
            >>> post = Post.create(title="Hello", status="publish", meta={"views": 0})
        """
        instance = cls(**attributes)
        instance.save(meta=meta)
        return instance

    @classmethod
    def _from_record(cls, record: "Record") -> "Model":
        """Build a clean, persisted instance from a stored record."""
        instance = cls(**record.attributes)
        instance._is_persisted = True
        instance._trashed = record.trashed
        instance._attributes.set_raw(cls.key_name(), record.identity)  # type: ignore[union-attr]
        instance._attributes.mark_clean()  # type: ignore[union-attr]
        return instance

    # === Persistence ===

    def _stored_identity(self) -> Any:
        """
        Identity to use for storage calls, or None before the first save.

        Raises:
            NotFound: If the record was permanently deleted
        """
        if self._deleted:
            raise NotFound(f"{type(self).__name__} {self.get_key()} has been deleted")
        if not self._is_persisted:
            return None
        return self.get_key()

    def validate_attributes(self) -> None:
        """
        Check that required fields are non-empty.

        Raises:
            ValidationError: Listing every empty required field
        """
        cls = type(self)
        errors = [
            {"field": name, "msg": "Field is required"}
            for name, field_info in cls.model_fields.items()
            if is_required(field_info) and _is_empty(self.get_attribute(name))
        ]
        if errors:
            missing = ", ".join(error["field"] for error in errors)
            raise ValidationError(f"{cls.__name__} is missing required fields: {missing}", errors)

    def save(self, attributes: Optional[dict[str, Any]] = None, *, meta: Optional[dict[str, Any]] = None) -> "Model":
        """
        Save the model to the backend.

        Creates the record when the model has no identity yet, otherwise
        sends only the dirty attributes. Meta and term assignments buffered
        before the first save are flushed once the identity is known.

        Args:
            attributes: Attributes to merge before saving
            meta: Meta values to write as part of this save

        Returns:
            self

        Raises:
            OperationVetoed: If a saving/creating/updating callback rejects
            ValidationError: If required fields are empty
            PersistenceError: If the backend rejects the write
            MetaPersistenceError: If a meta write fails after the record
                was saved; the unwritten remainder stays buffered
        """
        cls = type(self)
        registry.boot(cls)
        if self._deleted:
            raise NotFound(f"{cls.__name__} {self.get_key()} has been deleted")

        backend = cls._get_backend()
        events = registry.events
        attribute_store: AttributeStore = self._attributes  # type: ignore[assignment]
        state = attribute_store.snapshot()
        creating = not self._is_persisted
        performed = False

        try:
            if attributes:
                self.fill(attributes)

            events.fire(cls, "saving", self)

            if creating:
                events.fire(cls, "creating", self)
                self.validate_attributes()

                key_name = cls.key_name()
                payload = self.model_dump()
                if payload.get(key_name) is None:
                    payload.pop(key_name, None)

                identity = backend.create(cls, payload)
                attribute_store.set_raw(key_name, identity)
                self._is_persisted = True
                performed = True
            elif attribute_store.is_dirty():
                events.fire(cls, "updating", self)
                self.validate_attributes()
                backend.update(cls, self.get_key(), attribute_store.dirty_payload())
                performed = True
        except Exception:
            attribute_store.restore(state)
            raise

        attribute_store.mark_clean()
        if performed:
            events.fire(cls, "created" if creating else "updated", self)

        for key, value in (meta or {}).items():
            self._meta_buffer.defer(key, value)  # type: ignore[union-attr]

        identity = self.get_key()
        self._meta_buffer.flush(identity)  # type: ignore[union-attr]
        self._terms.flush(identity)  # type: ignore[union-attr]

        events.fire(cls, "saved", self)
        return self

    def delete(self, force: bool = False) -> bool:
        """
        Delete the model.

        Soft-deletable types are trashed unless force is set; everything
        else is removed permanently, along with its meta and terms.

        Returns:
            True if a record was trashed or removed, False if there was
            nothing to delete

        Raises:
            OperationVetoed: If a deleting/trashing callback rejects
        """
        cls = type(self)
        registry.boot(cls)
        if not self.exists:
            return False

        backend = cls._get_backend()
        identity = self.get_key()

        if cls.soft_deletes and not force:
            if self._trashed:
                return False
            registry.events.fire(cls, "trashing", self)
            backend.delete(cls, identity, permanent=False)
            self._trashed = True
            logger.info(f"Trashed {cls.__name__} {identity}")
            registry.events.fire(cls, "trashed", self)
            return True

        registry.events.fire(cls, "deleting", self)
        backend.delete(cls, identity, permanent=True)
        self._deleted = True
        self._trashed = False
        logger.info(f"Deleted {cls.__name__} {identity}")
        registry.events.fire(cls, "deleted", self)
        return True

    def refresh(self) -> "Model":
        """
        Reload attributes from the backend, discarding unsaved changes.

        Raises:
            NotFound: If the model was never saved or the record is gone
        """
        cls = type(self)
        identity = self._stored_identity()
        if identity is None:
            raise NotFound(f"{cls.__name__} has not been saved")

        record = cls._get_backend().get(cls, identity)
        if record is None:
            raise NotFound(f"{cls.__name__} {identity} not found")

        fresh = cls._from_record(record)
        self._attributes.restore(fresh._attributes.snapshot())  # type: ignore[union-attr]
        self._trashed = record.trashed
        return self

    # === Terms ===

    def get_terms(self, taxonomy: str) -> list["Model"]:
        """
        Terms associated with this model in one taxonomy.

        Raises:
            NotFound: If the model was permanently deleted
        """
        return self._terms.get(taxonomy)  # type: ignore[union-attr]

    def set_terms(self, terms: Any, taxonomy: Optional[str] = None) -> list["Model"]:
        """
        Replace the association set for a taxonomy.

        Buffered until the first save, written immediately afterwards.

        Raises:
            AmbiguousTaxonomy: If taxonomy is omitted and the terms do not
                share exactly one
        """
        return self._terms.set(terms, taxonomy)  # type: ignore[union-attr]
