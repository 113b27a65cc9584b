"""Integration test for SQLite full workflow.

Covers: schema creation, save/update/delete/fetch round trips through
every mapping kind, unique-key upserts, references, free-form id queries
and transactions, end-to-end against a real SQLite in-memory database.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

import pytest
from pydantic import BaseModel, ValidationError

from row_persist.core.connection import ConnectionConfig, ConnectionManager
from row_persist.core.engine import Engine
from row_persist.core.enums import InitMode
from row_persist.core.exceptions import (
    EntityNotRegisteredError,
    IdColumnError,
    NoUniqueKeysError,
    SQLSanitizationError,
    StaleEntityError,
    UnpersistedEntityError,
)
from row_persist.mapping import (
    Persisted,
    boolean,
    date as date_shape,
    decimal,
    double,
    embedded,
    entity,
    enum_of,
    integer,
    map_of,
    option,
    ref,
    seq,
    set_of,
    text,
    time as time_shape,
    timestamp,
    tuple_of,
    varchar,
)

# --- Test models ---


class Genre(Enum):
    ROCK = "rock"
    JAZZ = "jazz"


@dataclass
class Article:
    title: str
    tags: list[str] = field(default_factory=list)


@dataclass
class Artist:
    name: str
    genres: set[Genre] = field(default_factory=set)


@dataclass
class Location:
    city: str
    street: str | None = None


@dataclass
class Track:
    title: str
    artist: Artist
    featuring: Artist | None = None
    guests: list[Artist] = field(default_factory=list)


@dataclass
class Event:
    name: str
    venue: Location
    day: date
    doors: time
    created: datetime
    price: Decimal
    rating: float
    sold_out: bool
    slot: tuple[int, str]
    capacity: int | None
    lineup: list[list[str]]
    prices: dict[str, int]
    backup: Location | None
    notes: list[str] | None


class Singer(BaseModel):
    name: str


class Song(BaseModel):
    title: str
    singer: Persisted
    backing: list[Persisted] = []
    length: int | None = None


class Note:
    """Stored but never registered."""


# --- Fixtures ---


@pytest.fixture
def engine() -> Iterator[Engine]:
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    eng = Engine(
        ConnectionManager(config),
        [
            entity(Article).field("title", text()).field("tags", seq(text())).build(),
            entity(Artist)
            .field("name", varchar())
            .field("genres", set_of(enum_of(Genre)))
            .unique("name")
            .build(),
            entity(Track)
            .field("title", text())
            .field("artist", ref(Artist))
            .field("featuring", option(ref(Artist)))
            .field("guests", seq(ref(Artist)))
            .index("title")
            .build(),
            entity(Event)
            .field("name", varchar())
            .field("venue", embedded(Location, city=varchar(), street=option(text())))
            .field("day", date_shape())
            .field("doors", time_shape())
            .field("created", timestamp())
            .field("price", decimal())
            .field("rating", double())
            .field("sold_out", boolean())
            .field("slot", tuple_of(integer(), varchar()))
            .field("capacity", option(integer()))
            .field("lineup", seq(seq(varchar())))
            .field("prices", map_of(varchar(), integer()))
            .field("backup", option(embedded(Location, city=varchar(), street=option(text()))))
            .field("notes", option(seq(text())))
            .build(),
        ],
    )
    yield eng
    eng.close()


def _count(engine: Engine, table: str, where: str = "", params: dict | None = None) -> int:
    with engine.transaction() as uow:
        sql = f'SELECT COUNT(*) AS cnt FROM "{table}" {where}'
        return uow.session.query(sql, params)[0]["cnt"]


def _event(**overrides) -> Event:
    values = dict(
        name="Jazz Night",
        venue=Location("Oslo", "Main st"),
        day=date(2024, 6, 1),
        doors=time(19, 30),
        created=datetime(2024, 5, 1, 12, 0, 0),
        price=Decimal("12.50"),
        rating=4.5,
        sold_out=False,
        slot=(2, "evening"),
        capacity=None,
        lineup=[["a", "b"], [], ["c"]],
        prices={"adult": 20, "child": 10},
        backup=None,
        notes=None,
    )
    values.update(overrides)
    return Event(**values)


# --- Tests ---


class TestArticleScenario:
    def test_save_returns_persisted(self, engine: Engine) -> None:
        saved = engine.save(Article(title="A", tags=["x", "y"]))
        assert saved == Persisted(Article("A", ["x", "y"]), 1)
        assert saved.id == 1
        assert saved.title == "A"

    def test_dependent_rows(self, engine: Engine) -> None:
        engine.save(Article(title="A", tags=["x", "y"]))
        assert _count(engine, "article$tags", 'WHERE "article$id" = 1') == 2

    def test_delete_cascades(self, engine: Engine) -> None:
        saved = engine.save(Article(title="A", tags=["x", "y"]))
        engine.delete(saved)
        assert _count(engine, "article") == 0
        assert _count(engine, "article$tags") == 0

    def test_fetch_round_trip_keeps_order(self, engine: Engine) -> None:
        saved = engine.save(Article(title="A", tags=["z", "a", "m"]))
        assert engine.fetch_by_id(Article, saved.id) == saved

    def test_fetch_missing_returns_none(self, engine: Engine) -> None:
        assert engine.fetch_by_id(Article, 99) is None


class TestIdentity:
    def test_insert_then_update_keeps_id(self, engine: Engine) -> None:
        saved = engine.save(Article("A", ["x"]))
        updated = engine.save(Persisted(Article("B", ["y", "z"]), saved.id))
        assert updated.id == saved.id
        assert engine.fetch_by_id(Article, saved.id) == Persisted(Article("B", ["y", "z"]), 1)
        assert _count(engine, "article") == 1
        assert _count(engine, "article$tags") == 2

    def test_two_inserts_get_distinct_ids(self, engine: Engine) -> None:
        first = engine.save(Article("A"))
        second = engine.save(Article("A"))
        assert first.id != second.id

    def test_update_is_idempotent(self, engine: Engine) -> None:
        saved = engine.save(Article("A", ["x", "y"]))
        engine.save(saved)
        engine.save(saved)
        assert engine.fetch_by_id(Article, saved.id) == saved
        assert _count(engine, "article$tags") == 2

    def test_delete_transient_raises_and_writes_nothing(self, engine: Engine) -> None:
        engine.save(Article("A", ["x"]))
        with pytest.raises(UnpersistedEntityError, match="delete"):
            engine.delete(Article("A", ["x"]))
        assert _count(engine, "article") == 1

    def test_save_after_delete_is_stale(self, engine: Engine) -> None:
        saved = engine.save(Article("A"))
        engine.delete(saved)
        with pytest.raises(StaleEntityError):
            engine.save(saved)

    def test_unregistered_type(self, engine: Engine) -> None:
        with pytest.raises(EntityNotRegisteredError):
            engine.save(Note())


class TestUniqueKeys:
    def test_save_by_unique_keys_inserts_then_updates(self, engine: Engine) -> None:
        first = engine.save_by_unique_keys(Artist("Nina", {Genre.JAZZ}))
        second = engine.save_by_unique_keys(Artist("Nina", {Genre.JAZZ, Genre.ROCK}))
        assert first.id == second.id
        assert _count(engine, "artist") == 1
        fetched = engine.fetch_by_id(Artist, first.id)
        assert fetched.genres == {Genre.JAZZ, Genre.ROCK}

    def test_save_by_unique_keys_without_keys(self, engine: Engine) -> None:
        with pytest.raises(NoUniqueKeysError):
            engine.save_by_unique_keys(Article("A"))

    def test_unique_key_enforced_by_store(self, engine: Engine) -> None:
        import sqlite3

        engine.save(Artist("Nina"))
        with pytest.raises(sqlite3.IntegrityError):
            engine.save(Artist("Nina"))


class TestReferences:
    def test_round_trip(self, engine: Engine) -> None:
        nina = engine.save(Artist("Nina", {Genre.JAZZ}))
        miles = engine.save(Artist("Miles"))
        track = engine.save(Track("Tune", nina, featuring=None, guests=[miles, nina]))
        fetched = engine.fetch_by_id(Track, track.id)
        assert fetched.value.artist == nina
        assert fetched.value.featuring is None
        assert fetched.value.guests == [miles, nina]

    def test_transient_reference_rejected(self, engine: Engine) -> None:
        with pytest.raises(UnpersistedEntityError, match="refer to"):
            engine.save(Track("Tune", Artist("Nobody")))
        assert _count(engine, "track") == 0

    def test_referenced_entity_cannot_be_deleted(self, engine: Engine) -> None:
        import sqlite3

        nina = engine.save(Artist("Nina"))
        engine.save(Track("Tune", nina))
        with pytest.raises(sqlite3.IntegrityError):
            engine.delete(nina)

    def test_optional_reference_set_null_on_delete(self, engine: Engine) -> None:
        nina = engine.save(Artist("Nina"))
        guest = engine.save(Artist("Guest"))
        track = engine.save(Track("Tune", nina, featuring=guest))
        engine.delete(guest)
        assert engine.fetch_by_id(Track, track.id).value.featuring is None


class TestAllShapes:
    def test_round_trip(self, engine: Engine) -> None:
        event = _event()
        saved = engine.save(event)
        fetched = engine.fetch_by_id(Event, saved.id)
        assert fetched.value == event

    def test_optional_values_present(self, engine: Engine) -> None:
        event = _event(
            capacity=300,
            backup=Location("Bergen"),
            notes=["bring id"],
            sold_out=True,
        )
        saved = engine.save(event)
        assert engine.fetch_by_id(Event, saved.id).value == event

    def test_empty_optional_collection_differs_from_absent(self, engine: Engine) -> None:
        saved = engine.save(_event(notes=[]))
        assert engine.fetch_by_id(Event, saved.id).value.notes == []
        assert _count(engine, "event$notes") == 1

    def test_nested_collections_replaced_on_update(self, engine: Engine) -> None:
        saved = engine.save(_event())
        engine.save(saved.replace(_event(lineup=[["solo"]])))
        assert engine.fetch_by_id(Event, saved.id).value.lineup == [["solo"]]
        assert _count(engine, "event$lineup") == 1
        assert _count(engine, "event$lineup$v") == 1

    def test_delete_cascades_through_nesting(self, engine: Engine) -> None:
        saved = engine.save(_event(notes=["a", "b"]))
        engine.delete(saved)
        for table in ("event", "event$lineup", "event$lineup$v", "event$prices", "event$notes"):
            assert _count(engine, table) == 0
        assert _count(engine, "event$notes$v") == 0


class TestFetchWithSql:
    def test_fetch_by_ids(self, engine: Engine) -> None:
        engine.save(Article("A", ["x"]))
        b = engine.save(Article("B"))
        c = engine.save(Article("C", ["y"]))
        found = engine.fetch_with_sql(
            Article, "SELECT id FROM article WHERE title >= :t ORDER BY id -- newest", {"t": "B"}
        )
        assert found == [b, c]

    def test_other_columns_rejected(self, engine: Engine) -> None:
        engine.save(Article("A"))
        with pytest.raises(IdColumnError):
            engine.fetch_with_sql(Article, "SELECT id, title FROM article")

    def test_empty_result(self, engine: Engine) -> None:
        assert engine.fetch_with_sql(Article, "SELECT id FROM article") == []

    def test_writes_rejected(self, engine: Engine) -> None:
        with pytest.raises(SQLSanitizationError):
            engine.fetch_with_sql(Article, "DELETE FROM article")


class TestTransactions:
    def test_unit_of_work_commits(self, engine: Engine) -> None:
        with engine.transaction() as uow:
            nina = uow.save(Artist("Nina"))
            uow.save(Track("Tune", nina))
        assert _count(engine, "track") == 1

    def test_failure_rolls_back_everything(self, engine: Engine) -> None:
        with pytest.raises(UnpersistedEntityError), engine.transaction() as uow:
            uow.save(Article("A", ["x"]))
            uow.save(Track("Tune", Artist("Nobody")))
        assert _count(engine, "article") == 0
        assert _count(engine, "article$tags") == 0

    def test_explicit_rollback(self, engine: Engine) -> None:
        with engine.transaction() as uow:
            uow.save(Article("A"))
            uow.rollback()
        assert _count(engine, "article") == 0

    def test_nested_transaction_joins(self, engine: Engine) -> None:
        with pytest.raises(RuntimeError), engine.transaction() as uow:
            with uow.transaction():
                uow.save(Article("A"))
            raise RuntimeError("abort")
        assert _count(engine, "article") == 0


class TestSchemaInit:
    def test_tables_created(self, engine: Engine) -> None:
        names = engine.schema.table_names
        assert "article$tags" in names
        assert "event$lineup$v" in names
        assert "track$guests" in names

    def test_init_mode_none_on_existing_schema(self, tmp_path) -> None:
        config = ConnectionConfig(driver="sqlite", database=str(tmp_path / "db.sqlite"))
        plans = [entity(Article).field("title", text()).field("tags", seq(text())).build()]
        first = Engine.from_config(config, plans)
        first.save(Article("A", ["x"]))
        first.close()

        second = Engine.from_config(config, plans, InitMode.NONE)
        assert second.fetch_by_id(Article, 1) == Persisted(Article("A", ["x"]), 1)
        second.close()

        third = Engine.from_config(config, plans, InitMode.DROP_CREATE)
        assert third.fetch_by_id(Article, 1) is None
        third.close()

    def test_create_fails_when_tables_exist(self, tmp_path) -> None:
        import sqlite3

        config = ConnectionConfig(driver="sqlite", database=str(tmp_path / "db.sqlite"))
        plans = [entity(Article).field("title", text()).build()]
        Engine.from_config(config, plans).close()
        with pytest.raises(sqlite3.OperationalError):
            Engine.from_config(config, plans)


class TestNow:
    def test_now_close_to_server_clock(self, engine: Engine) -> None:
        first = engine.now()
        second = engine.now()
        assert second >= first
        assert isinstance(first, datetime)


class TestPydanticEntities:
    @pytest.fixture
    def songs(self) -> Iterator[Engine]:
        config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
        eng = Engine.from_config(
            config,
            [
                entity(Singer).field("name", varchar()).build(),
                entity(Song)
                .field("title", text())
                .field("singer", ref(Singer))
                .field("backing", seq(ref(Singer)))
                .field("length", option(integer()))
                .build(),
            ],
        )
        yield eng
        eng.close()

    def test_round_trip_with_references(self, songs: Engine) -> None:
        nina = songs.save(Singer(name="Nina"))
        miles = songs.save(Singer(name="Miles"))
        saved = songs.save(Song(title="Tune", singer=nina, backing=[miles, nina]))

        fetched = songs.fetch_by_id(Song, saved.id)
        assert isinstance(fetched.value, Song)
        assert fetched.title == "Tune"
        assert fetched.singer == nina
        assert fetched.singer.name == "Nina"
        assert fetched.backing == [miles, nina]
        assert fetched.length is None

    def test_update(self, songs: Engine) -> None:
        nina = songs.save(Singer(name="Nina"))
        saved = songs.save(Song(title="Tune", singer=nina))
        songs.save(saved.replace(Song(title="Tune", singer=nina, length=180)))
        assert songs.fetch_by_id(Song, saved.id).length == 180

    def test_reference_fields_require_saved_entities(self) -> None:
        with pytest.raises(ValidationError):
            Song(title="Tune", singer=Singer(name="Nina"))

    def test_transient_reference_rejected(self, songs: Engine) -> None:
        song = Song.model_construct(title="Tune", singer=Singer(name="Nina"), backing=[])
        with pytest.raises(UnpersistedEntityError, match="refer to"):
            songs.save(song)
        assert _count(songs, "song") == 0
