from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from ..errors import NotFound
from ..models import Configuration, Resource


@dataclass(frozen=True)
class BookingTarget:
    """What a guest asked for, resolved to physical inventory."""

    key: str
    nightly_rate: Decimal
    occupied: tuple[int, ...]
    conflict_set: frozenset[int]
    resource: Resource | None = field(default=None, compare=False)
    configuration: Configuration | None = field(default=None, compare=False)

    @property
    def resource_id(self) -> int | None:
        return self.resource.id if self.resource is not None else None

    @property
    def configuration_id(self) -> int | None:
        return self.configuration.id if self.configuration is not None else None


def resolve_conflict_set(resource: Resource) -> set[int]:
    """
    Resource ids whose occupancy must be checked before `resource` can be booked.
    - parent: itself plus every child (booking the villa blocks each room)
    - child: itself plus its parent (a booked room blocks the whole villa)
    - standalone: itself
    """
    ids = {resource.id}
    if resource.children:
        ids.update(child.id for child in resource.children)
    elif resource.parent_id is not None:
        ids.add(resource.parent_id)
    return ids


def get_resource(db: Session, slug: str) -> Resource:
    resource = db.query(Resource).filter(Resource.slug == slug).first()
    if resource is None:
        raise NotFound("Resource not found", details={"target": slug})
    return resource


def resolve_target(db: Session, key: str) -> BookingTarget:
    """Resolve a configuration slug (checked first) or a resource slug."""
    key = (key or "").strip()
    config = db.query(Configuration).filter(Configuration.slug == key).first()
    if config is not None:
        if not config.active:
            raise NotFound("Configuration not found", details={"target": key})
        if not config.resources:
            raise NotFound("Configuration has no resources", details={"target": key})
        conflict_set: set[int] = set()
        for resource in config.resources:
            conflict_set |= resolve_conflict_set(resource)
        return BookingTarget(
            key=key,
            nightly_rate=Decimal(str(config.price_per_night)),
            occupied=tuple(r.id for r in config.resources),
            conflict_set=frozenset(conflict_set),
            configuration=config,
        )

    resource = get_resource(db, key)
    return BookingTarget(
        key=key,
        nightly_rate=Decimal(str(resource.nightly_rate)),
        occupied=(resource.id,),
        conflict_set=frozenset(resolve_conflict_set(resource)),
        resource=resource,
    )
