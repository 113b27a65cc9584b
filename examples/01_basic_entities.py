"""
Example 01: Basic entities

This example declares two entities, lets the engine create their tables,
and walks through save, update, fetch and delete.
"""

from dataclasses import dataclass, field
from enum import Enum

from row_persist import ConnectionConfig, Engine, entity
from row_persist.mapping import enum_of, option, ref, seq, set_of, text, varchar


class Genre(Enum):
    ROCK = "rock"
    JAZZ = "jazz"
    FOLK = "folk"


@dataclass
class Artist:
    name: str
    genres: set[Genre] = field(default_factory=set)


@dataclass
class Album:
    title: str
    artist: Artist
    tracks: list[str] = field(default_factory=list)
    producer: Artist | None = None


def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    engine = Engine.from_config(
        config,
        [
            entity(Artist)
            .field("name", varchar())
            .field("genres", set_of(enum_of(Genre)))
            .unique("name")
            .build(),
            entity(Album)
            .field("title", text())
            .field("artist", ref(Artist))
            .field("tracks", seq(text()))
            .field("producer", option(ref(Artist)))
            .build(),
        ],
    )

    print("=== Schema ===\n")
    for statement in engine.schema.statements():
        print(statement + ";\n")

    print("=== Save ===\n")
    nina = engine.save(Artist("Nina", {Genre.JAZZ}))
    print(f"Saved {nina.name} with id {nina.id}")

    album = engine.save(Album("Little Girl Blue", nina, ["Mood Indigo", "Central Park Blues"]))
    print(f"Saved album {album.title!r} with id {album.id}")

    print("\n=== Update ===\n")
    album = engine.save(album.replace(Album(album.title, nina, [*album.tracks, "Plain Gold Ring"])))
    print(f"Album {album.id} now has {len(album.tracks)} tracks")

    # Upsert by the declared unique key
    nina = engine.save_by_unique_keys(Artist("Nina", {Genre.JAZZ, Genre.FOLK}))
    print(f"Artist {nina.id} genres: {sorted(g.value for g in nina.genres)}")

    print("\n=== Fetch ===\n")
    fetched = engine.fetch_by_id(Album, album.id)
    print(f"{fetched.title} by {fetched.artist.name}: {fetched.tracks}")

    found = engine.fetch_with_sql(Album, "SELECT id FROM album WHERE title LIKE :p", {"p": "Little%"})
    print(f"Found {len(found)} album(s) by title")

    print("\n=== Delete ===\n")
    engine.delete(fetched)
    print(f"Album {album.id} after delete: {engine.fetch_by_id(Album, album.id)}")

    engine.close()


if __name__ == "__main__":
    main()
