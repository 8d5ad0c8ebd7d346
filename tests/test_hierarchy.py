from decimal import Decimal

import pytest

from villabook.errors import NotFound
from villabook.models import Configuration, Resource
from villabook.services.catalog import CatalogError, add_configuration, add_resource, seed_default_catalog
from villabook.services.hierarchy import resolve_conflict_set, resolve_target

from .conftest import resource_id


def _ids(database, *slugs):
    return {resource_id(database, s) for s in slugs}


def test_parent_conflicts_with_every_child(catalog):
    db = catalog.session()
    villa = db.query(Resource).filter_by(slug="villa").one()
    assert resolve_conflict_set(villa) == _ids(catalog, "villa", "room1", "room2")
    db.close()


def test_child_conflicts_with_parent_but_not_siblings(catalog):
    db = catalog.session()
    room1 = db.query(Resource).filter_by(slug="room1").one()
    assert resolve_conflict_set(room1) == _ids(catalog, "room1", "villa")
    db.close()


def test_standalone_resource_conflicts_with_itself(catalog):
    db = catalog.session()
    cabin = db.query(Resource).filter_by(slug="cabin").one()
    assert resolve_conflict_set(cabin) == _ids(catalog, "cabin")
    db.close()


def test_configuration_target_unions_conflict_sets(catalog):
    db = catalog.session()
    target = resolve_target(db, "two-rooms")
    assert target.configuration_id is not None
    assert target.resource_id is None
    assert set(target.occupied) == _ids(catalog, "room1", "room2")
    assert target.conflict_set == _ids(catalog, "room1", "room2", "villa")
    assert target.nightly_rate == Decimal("300")
    db.close()


def test_resource_target(catalog):
    db = catalog.session()
    target = resolve_target(db, "room2")
    assert target.resource_id == resource_id(catalog, "room2")
    assert target.occupied == (resource_id(catalog, "room2"),)
    assert target.nightly_rate == Decimal("150")
    db.close()


def test_configuration_slug_wins_over_resource_slug(catalog):
    with catalog.unit_of_work() as db:
        add_configuration(db, "cabin", "Cabin stay", 90, ["cabin"])
    db = catalog.session()
    target = resolve_target(db, "cabin")
    assert target.configuration_id is not None
    assert target.nightly_rate == Decimal("90")
    db.close()


@pytest.mark.parametrize("key", ["nowhere", "", "retired"])
def test_unknown_or_inactive_targets_are_not_found(catalog, key):
    db = catalog.session()
    with pytest.raises(NotFound):
        resolve_target(db, key)
    db.close()


def test_configuration_without_resources_is_not_found(catalog):
    with catalog.unit_of_work() as db:
        db.add(Configuration(slug="empty", label="Nothing", price_per_night=Decimal("1"), active=True))
    db = catalog.session()
    with pytest.raises(NotFound):
        resolve_target(db, "empty")
    db.close()


def test_resources_nest_two_levels_only(catalog):
    with catalog.unit_of_work() as db:
        with pytest.raises(CatalogError):
            add_resource(db, "closet", "Closet", 10, parent_slug="room1")


def test_catalog_rejects_duplicates_and_unknown_resources(catalog):
    with catalog.unit_of_work() as db:
        with pytest.raises(CatalogError):
            add_resource(db, "villa", "Another villa", 1)
        with pytest.raises(CatalogError):
            add_configuration(db, "ghost", "Ghost", 10, ["room1", "attic"])
        with pytest.raises(CatalogError):
            add_configuration(db, "none", "None", 10, [])


def test_seed_default_catalog_only_touches_an_empty_database(database):
    with database.unit_of_work() as db:
        assert seed_default_catalog(db) is True
    with database.unit_of_work() as db:
        assert seed_default_catalog(db) is False
        assert db.query(Resource).count() == 6
        assert db.query(Configuration).count() == 4
        three_bhk = resolve_target(db, "3bhk-villa")
        assert len(three_bhk.occupied) == 3
        assert len(three_bhk.conflict_set) == 4
