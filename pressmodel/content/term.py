"""Taxonomy terms: categories, tags and custom taxonomies."""

from typing import Optional

from pressmodel.content.utils import slugify
from pressmodel.hooks import on
from pressmodel.models import Field, Model


class Term(Model, table="terms"):
    """
    A term in a taxonomy.

    Example:
        >>> news = Term.create(name="Breaking News", taxonomy="category")
        >>> news.slug
        'breaking-news'
        >>> Term.in_taxonomy("category").count()
        1
    """

    term_id: Optional[int] = Field(None, primary_key=True, aliases=("id",))
    name: str = Field("", required=True)
    slug: str = ""
    taxonomy: str = Field("", required=True)
    description: str = ""
    parent: int = 0

    @on("creating")
    def fill_slug(self):
        if not self.slug:
            self.slug = slugify(self.name)

    @classmethod
    def scope_in_taxonomy(cls, query, taxonomy: str):
        return query.where(taxonomy=taxonomy)
