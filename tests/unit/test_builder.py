"""Unit tests for the entity declaration builder."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel

from row_persist.core.exceptions import EntityDeclarationError
from row_persist.mapping.builder import _get_field_names, entity, table_name_for
from row_persist.mapping.plan import EntityPlan, EntitySettings
from row_persist.mapping.shape import SeqShape, embedded, integer, seq, text, varchar


@dataclass
class Article:
    title: str
    tags: list[str] = field(default_factory=list)


@dataclass
class Address:
    city: str


class ArtistGenre:
    def __init__(self, name: str, *, weight: int = 0) -> None:
        self.name = name
        self.weight = weight


class Loose:
    def __init__(self, **kwargs: object) -> None:
        self.__dict__.update(kwargs)


class Song(BaseModel):
    title: str
    length: int


class TestTableNames:
    def test_snake_case(self) -> None:
        assert table_name_for(Article) == "article"
        assert table_name_for(ArtistGenre) == "artist_genre"

    def test_acronyms(self) -> None:
        class HTTPRoute:
            pass

        assert table_name_for(HTTPRoute) == "http_route"

    def test_override(self) -> None:
        plan = entity(Article, table="posts").field("title", text()).build()
        assert plan.table_name == "posts"


class TestGetFieldNames:
    def test_dataclass(self) -> None:
        assert _get_field_names(Article) == ["title", "tags"]

    def test_pydantic(self) -> None:
        assert _get_field_names(Song) == ["title", "length"]

    def test_plain_class(self) -> None:
        assert _get_field_names(ArtistGenre) == ["name", "weight"]

    def test_var_keyword_accepts_anything(self) -> None:
        assert _get_field_names(Loose) is None


class TestEntityBuilder:
    def test_build_plan(self) -> None:
        plan = (
            entity(Article)
            .field("title", text())
            .field("tags", seq(text()))
            .unique("title")
            .index("title", "tags")
            .build()
        )
        assert isinstance(plan, EntityPlan)
        assert plan.entity_class is Article
        assert plan.table_name == "article"
        assert plan.property_names == ("title", "tags")
        assert isinstance(plan.properties[1][1], SeqShape)
        assert plan.settings == EntitySettings(
            unique_keys=(("title",),), indexes=(("title", "tags"),)
        )

    def test_id_is_reserved(self) -> None:
        with pytest.raises(EntityDeclarationError, match="reserved"):
            entity(Loose).field("id", integer()).build()

    def test_duplicate_field(self) -> None:
        with pytest.raises(EntityDeclarationError, match="twice"):
            entity(Article).field("title", text()).field("title", varchar())

    def test_unknown_constructor_field(self) -> None:
        with pytest.raises(EntityDeclarationError, match="subtitle"):
            entity(Article).field("subtitle", text()).build()

    def test_unknown_embedded_field(self) -> None:
        with pytest.raises(EntityDeclarationError, match="country"):
            entity(Loose).field("home", embedded(Address, country=text())).build()

    def test_unique_key_over_undeclared_property(self) -> None:
        with pytest.raises(EntityDeclarationError, match="unique key"):
            entity(Article).field("title", text()).unique("tags").build()

    def test_empty_index(self) -> None:
        with pytest.raises(EntityDeclarationError, match="empty index"):
            entity(Article).field("title", text()).index().build()

    def test_non_shape_rejected(self) -> None:
        with pytest.raises(EntityDeclarationError, match="not a property shape"):
            entity(Article).field("title", str).build()  # type: ignore[arg-type]

    def test_pydantic_entity(self) -> None:
        plan = entity(Song).field("title", text()).field("length", integer()).build()
        assert plan.table_name == "song"


class TestPublicEntry:
    def test_package_exports_builder_function(self) -> None:
        import row_persist.mapping as mapping

        assert mapping.entity is entity
        assert callable(mapping.entity)
        assert isinstance(mapping.entity(Article), type(entity(Article)))


class TestPathSeparator:
    def test_dollar_in_property_name(self) -> None:
        with pytest.raises(EntityDeclarationError, match=r"a\$b.*may not contain"):
            entity(Loose).field("a$b", seq(text())).build()

    def test_dollar_in_embedded_field_name(self) -> None:
        with pytest.raises(EntityDeclarationError, match=r"a\.b\$c.*may not contain"):
            entity(Loose).field("a", embedded(Loose, **{"b$c": text()})).build()
