from __future__ import annotations
from typing import TYPE_CHECKING
from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .resource import Resource

configuration_resources = Table(
    "configuration_resources",
    Base.metadata,
    Column("configuration_id", ForeignKey("configurations.id", ondelete="CASCADE"), primary_key=True),
    Column("resource_id", ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True, index=True),
)

class Configuration(Base):
    """A guest-facing stay option ("Entire Villa", "3BHK in Villa") priced on its own."""

    __tablename__ = "configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    price_per_night: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    resources: Mapped[list["Resource"]] = relationship(
        secondary=configuration_resources, back_populates="configurations", order_by="Resource.id"
    )
