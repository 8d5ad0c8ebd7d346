import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models import Configuration, Resource

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    pass


def add_resource(db: Session, slug: str, name: str, nightly_rate, parent_slug: Optional[str] = None) -> Resource:
    """Add a bookable unit. Rooms hang off a parent; the tree never gets deeper than two levels."""
    if db.query(Resource).filter(Resource.slug == slug).first():
        raise CatalogError(f"Resource {slug!r} already exists")
    parent = None
    if parent_slug:
        parent = db.query(Resource).filter(Resource.slug == parent_slug).first()
        if parent is None:
            raise CatalogError(f"Parent resource {parent_slug!r} not found")
        if parent.parent_id is not None:
            raise CatalogError(f"{parent_slug!r} is itself a room; resources nest at most two levels")
    resource = Resource(slug=slug, name=name, nightly_rate=Decimal(str(nightly_rate)), parent=parent)
    db.add(resource)
    db.flush()
    return resource


def add_configuration(db: Session, slug: str, label: str, price_per_night, resource_slugs: Iterable[str], active: bool = True) -> Configuration:
    slugs = list(dict.fromkeys(resource_slugs))
    if not slugs:
        raise CatalogError("A configuration must map to at least one resource")
    if db.query(Configuration).filter(Configuration.slug == slug).first():
        raise CatalogError(f"Configuration {slug!r} already exists")
    resources = db.query(Resource).filter(Resource.slug.in_(slugs)).all()
    missing = set(slugs) - {r.slug for r in resources}
    if missing:
        raise CatalogError(f"Unknown resources: {', '.join(sorted(missing))}")
    config = Configuration(
        slug=slug,
        label=label,
        price_per_night=Decimal(str(price_per_night)),
        active=active,
        resources=resources,
    )
    db.add(config)
    db.flush()
    return config


# The villa, its rooms, and the stay options offered to guests
DEFAULT_RESOURCES = [
    ("villa", "Entire Villa", 15000, None),
    ("master-bedroom", "Master bedroom", 3000, "villa"),
    ("bedroom-2", "Bedroom 2", 2500, "villa"),
    ("ground-floor-bedroom", "Ground floor bedroom", 2500, "villa"),
    ("bedroom-3", "Bedroom 3 (attached bathroom)", 1500, "villa"),
    ("bedroom-4", "Bedroom 4 (shared bathroom)", 1200, "villa"),
]

DEFAULT_CONFIGURATIONS = [
    ("entire-villa", "Entire Villa", 15000, ["villa"]),
    ("3bhk-villa", "3BHK in Villa", 8000, ["master-bedroom", "bedroom-2", "ground-floor-bedroom"]),
    ("single-room-attached", "Single Room, attached bathroom", 1500, ["bedroom-3"]),
    ("single-room-shared", "Single Room, shared bathroom", 1200, ["bedroom-4"]),
]


def seed_default_catalog(db: Session) -> bool:
    """Insert the default catalog into an empty database. Returns True if anything was added."""
    if db.query(Resource).first() is not None:
        return False
    for slug, name, rate, parent in DEFAULT_RESOURCES:
        add_resource(db, slug, name, rate, parent_slug=parent)
    for slug, label, price, resource_slugs in DEFAULT_CONFIGURATIONS:
        add_configuration(db, slug, label, price, resource_slugs)
    logger.info("Seeded default catalog (%s resources, %s configurations).", len(DEFAULT_RESOURCES), len(DEFAULT_CONFIGURATIONS))
    return True
