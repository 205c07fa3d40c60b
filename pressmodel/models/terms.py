"""
Term relationships.

A model type opts in by declaring term_model, the model type of its terms.
Associations are replaced per taxonomy. Like meta, they are buffered until
the owning model has an identity.
"""

import logging
from typing import Any, Iterable, Optional, TYPE_CHECKING

from pressmodel.exceptions import AmbiguousTaxonomy

if TYPE_CHECKING:
    from pressmodel.models.base import Model

logger = logging.getLogger(__name__)


class TermRelations:
    """
    Term associations for one model instance.

    Terms may be given as term model instances, dicts of term attributes,
    integer term IDs, or names/slugs (the latter need a taxonomy; missing
    terms are created).

    Example:
        >>> news = Term.create(name="News", taxonomy="category")
        >>> post = Post(title="Hello", terms=[news])
        >>> post.save()                      # record, then set_terms(..., "category", [news.id])
        >>> post.set_terms(["python", "orm"], "post_tag")
        >>> [t.name for t in post.get_terms("post_tag")]
        ['python', 'orm']
    """

    def __init__(self, owner: "Model"):
        self._owner = owner
        # taxonomy -> resolved terms, in assignment order
        self._pending: dict[str, list["Model"]] = {}

    @property
    def term_model(self) -> type["Model"]:
        term_model = type(self._owner).term_model
        if term_model is None:
            raise TypeError(f"{type(self._owner).__name__} does not support terms")
        return term_model

    def _taxonomy_of(self, term: Any) -> Optional[str]:
        if isinstance(term, self.term_model):
            return term.get_attribute("taxonomy") or None
        if isinstance(term, dict):
            return term.get("taxonomy") or None
        if isinstance(term, int) and not isinstance(term, bool):
            return self.term_model.get(term).get_attribute("taxonomy") or None
        return None

    def infer_taxonomy(self, terms: list[Any]) -> str:
        """
        Taxonomy shared by every term.

        Raises:
            AmbiguousTaxonomy: If the terms span several taxonomies, or any
                term carries none
        """
        taxonomies = {self._taxonomy_of(term) for term in terms}
        if not terms or None in taxonomies:
            raise AmbiguousTaxonomy("Cannot infer a taxonomy for these terms; pass one explicitly")
        if len(taxonomies) > 1:
            raise AmbiguousTaxonomy(
                f"Terms span several taxonomies ({', '.join(sorted(taxonomies))}); pass one explicitly"  # type: ignore[arg-type]
            )
        return taxonomies.pop()  # type: ignore[return-value]

    def resolve(self, term: Any, taxonomy: str) -> "Model":
        """Turn one term reference into a term model instance."""
        term_model = self.term_model
        if isinstance(term, term_model):
            resolved = term
        elif isinstance(term, dict):
            data = dict(term)
            data.setdefault("taxonomy", taxonomy)
            resolved = term_model(**data)
        elif isinstance(term, int) and not isinstance(term, bool):
            resolved = term_model.get(term)
        elif isinstance(term, str):
            resolved = (
                term_model.find_by(slug=term, taxonomy=taxonomy)
                or term_model.find_by(name=term, taxonomy=taxonomy)
                or term_model(name=term, taxonomy=taxonomy)
            )
        else:
            raise TypeError(f"Cannot use {term!r} as a term")

        term_taxonomy = resolved.get_attribute("taxonomy")
        if not term_taxonomy:
            resolved.set_attribute("taxonomy", taxonomy)
        elif term_taxonomy != taxonomy:
            raise AmbiguousTaxonomy(
                f"Term '{resolved.get_attribute('name')}' belongs to '{term_taxonomy}', not '{taxonomy}'"
            )
        return resolved

    def set(self, terms: Iterable[Any], taxonomy: Optional[str] = None) -> list["Model"]:
        """
        Replace the full association set for one taxonomy.

        Raises:
            AmbiguousTaxonomy: If taxonomy is omitted and cannot be inferred
        """
        terms = list(terms)
        if taxonomy is None:
            taxonomy = self.infer_taxonomy(terms)
        resolved = [self.resolve(term, taxonomy) for term in terms]

        identity = self._owner._stored_identity()
        if identity is None:
            self._pending[taxonomy] = resolved
        else:
            self._pending.pop(taxonomy, None)
            self._write(identity, taxonomy, resolved)
        return resolved

    def get(self, taxonomy: str) -> list["Model"]:
        """Terms associated in one taxonomy, pending ones included."""
        if taxonomy in self._pending:
            return list(self._pending[taxonomy])

        identity = self._owner._stored_identity()
        if identity is None:
            return []

        model_class = type(self._owner)
        term_ids = model_class._get_backend().get_terms(model_class, identity, taxonomy)
        terms = [self.term_model.find(term_id) for term_id in term_ids]
        return [term for term in terms if term is not None]

    def flush(self, identity: Any) -> None:
        """Write buffered associations; each taxonomy leaves the buffer once written."""
        for taxonomy in list(self._pending):
            self._write(identity, taxonomy, self._pending[taxonomy])
            del self._pending[taxonomy]

    def _write(self, identity: Any, taxonomy: str, terms: list["Model"]) -> None:
        term_ids = []
        for term in terms:
            if not term.exists:
                term.save()
            term_ids.append(term.get_key())

        model_class = type(self._owner)
        model_class._get_backend().set_terms(model_class, identity, taxonomy, term_ids)
        logger.debug(f"Set {len(term_ids)} '{taxonomy}' terms on {model_class.__name__} {identity}")

    def pending(self) -> dict[str, list["Model"]]:
        return {taxonomy: list(terms) for taxonomy, terms in self._pending.items()}
