from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from sqlalchemy import Integer, String, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .configuration import Configuration

class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    nightly_rate: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    # Two-level tree: the whole villa is a parent, its rooms are children
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("resources.id"), nullable=True, index=True)

    parent: Mapped[Optional["Resource"]] = relationship(back_populates="children", remote_side=[id])
    children: Mapped[list["Resource"]] = relationship(back_populates="parent", order_by="Resource.id")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="resource")
    configurations: Mapped[list["Configuration"]] = relationship(
        secondary="configuration_resources", back_populates="resources"
    )

    @property
    def is_parent(self) -> bool:
        return bool(self.children)

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, slug={self.slug!r}, parent_id={self.parent_id})>"
