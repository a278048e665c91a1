"""Tests for catalog search filtering."""

from datetime import datetime, timezone

from tunestream.domain.library import filter_catalog
from tunestream.domain.models import Album, Artist


def test_matches_title_or_artist_case_insensitively(make_track):
    tracks = [
        make_track(1, title="Moonlight", artist_name="Luna"),
        make_track(2, title="Sunrise", artist_name="MOONRISE"),
        make_track(3, title="Rain", artist_name="Cloud"),
    ]

    results = filter_catalog("moon", tracks, [], [])

    assert [t.id for t in results.tracks] == [1, 2]


def test_albums_and_artists():
    released = datetime(2024, 1, 1, tzinfo=timezone.utc)
    albums = [
        Album(id=1, title="Blue Hour", artist_id=1, artist_name="Hue", release_date=released),
        Album(id=2, title="Red", artist_id=2, artist_name="Bluebird", release_date=released),
    ]
    artists = [Artist(id=1, name="Hue"), Artist(id=2, name="Bluebird")]

    results = filter_catalog("  BLUE ", [], albums, artists)

    assert [a.id for a in results.albums] == [1, 2]
    assert [a.id for a in results.artists] == [2]


def test_empty_query_matches_nothing(make_track):
    results = filter_catalog("   ", [make_track(1)], [], [Artist(id=1, name="A")])

    assert results.tracks == []
    assert results.artists == []
