from __future__ import annotations

from types import SimpleNamespace

from app.models import Country, Genre, Network, Show
from app.reconcile import Reconciler
from app.unit_of_work import UnitOfWork


def make_reconciler(session):
    return Reconciler(UnitOfWork(session))


def test_staged_country_is_reused_before_commit(session, row_count):
    reconciler = make_reconciler(session)

    first = reconciler.resolve_country("US", "United States", "America/New_York")
    second = reconciler.resolve_country("US", "Other name", "UTC")

    assert first is second
    assert second.name == "United States"
    session.commit()
    assert row_count(Country) == 1


def test_committed_country_is_not_overwritten(session):
    session.add(Country(code="GB", name="United Kingdom", timezone="Europe/London"))
    session.commit()

    country = make_reconciler(session).resolve_country("GB", "Britain", "UTC")

    assert country.name == "United Kingdom"
    assert country.timezone == "Europe/London"


def test_generated_network_ids_follow_explicit_ones(session):
    session.add(Network(id=50, name="Upstream numbered"))
    session.commit()
    reconciler = make_reconciler(session)

    staged = reconciler.resolve_network(60, "Also numbered", None)
    generated = reconciler.resolve_network(None, "Unnumbered", None)
    session.commit()

    assert staged.id == 60
    assert generated.id == 61
    assert make_reconciler(session).resolve_network(None, "Next", None).id == 62


def test_blank_country_code_yields_no_country(session):
    reconciler = make_reconciler(session)

    assert reconciler.resolve_country("", "Nowhere", None) is None
    assert reconciler.resolve_country(None, "Nowhere", None) is None
    assert reconciler.uow.staged_count == 0


def test_committed_network_wins_over_payload(session):
    session.add(Network(id=2, name="CBS", country=Country(code="US", name="United States")))
    session.commit()

    network = make_reconciler(session).resolve_network(
        2, "Renamed", SimpleNamespace(code="CA", name="Canada", timezone="America/Toronto")
    )

    assert network.name == "CBS"
    assert network.country.code == "US"


def test_unknown_network_id_creates_network_with_that_id(session):
    reconciler = make_reconciler(session)
    country = SimpleNamespace(code="US", name="United States", timezone="America/New_York")

    network = reconciler.resolve_network(99, "HBO", country)
    session.commit()

    stored = session.get(Network, 99)
    assert stored is network
    assert stored.country.code == "US"


def test_staged_network_is_reused_within_batch(session):
    reconciler = make_reconciler(session)

    first = reconciler.resolve_network(7, "ABC", None)
    second = reconciler.resolve_network(7, "ABC (dup)", None)

    assert first is second
    assert reconciler.uow.staged_count == 1


def test_network_without_id_always_creates(session):
    reconciler = make_reconciler(session)

    first = reconciler.resolve_network(None, "Local TV", None)
    second = reconciler.resolve_network(None, "Local TV", None)
    session.commit()

    assert first is not second
    assert first.id is not None
    assert second.id is not None
    assert first.id != second.id


def test_networks_share_staged_country(session, row_count):
    reconciler = make_reconciler(session)
    country = SimpleNamespace(code="US", name="United States", timezone="America/New_York")

    first = reconciler.resolve_network(1, "NBC", country)
    second = reconciler.resolve_network(2, "CBS", country)
    session.commit()

    assert first.country is second.country
    assert row_count(Country) == 1


def test_genres_are_deduplicated_and_blank_names_skipped(session, row_count):
    reconciler = make_reconciler(session)
    show = Show(id=1, name="Show 1", genres=[])

    reconciler.resolve_genres(show, ["Drama", "", None, "Drama", "  ", "Thriller"])

    assert [genre.name for genre in show.genres] == ["Drama", "Thriller"]
    reconciler.uow.stage_insert(show)
    session.commit()
    assert row_count(Genre) == 2


def test_genre_names_are_case_sensitive(session, row_count):
    reconciler = make_reconciler(session)
    show = Show(id=1, name="Show 1", genres=[])

    reconciler.resolve_genres(show, ["Drama", "drama"])

    assert len(show.genres) == 2


def test_committed_genre_is_reused(session):
    drama = Genre(name="Drama")
    session.add(drama)
    session.commit()
    show = Show(id=3, name="Show 3", genres=[])

    genre = make_reconciler(session).resolve_genre(show, "Drama")

    assert genre is drama
    assert show.genres == [drama]


def test_resolve_show_checks_storage_and_staged_shows(session):
    session.add(Show(id=1, name="Stored"))
    session.commit()
    reconciler = make_reconciler(session)

    assert reconciler.resolve_show(1).name == "Stored"
    assert reconciler.resolve_show(2) is None
    reconciler.uow.stage_insert(Show(id=2, name="Staged"))
    assert reconciler.resolve_show(2).name == "Staged"
