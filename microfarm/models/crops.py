"""CropProfile ORM model: per-variety growth parameters.

A profile is *schedulable* once ``average_yield_per_tray``,
``germination_days`` and ``light_days`` are all set.  ``soak_days`` is
optional: NULL or 0 means the variety goes straight to seeding.

``average_yield_per_tray`` starts as a grower estimate and is refined by
the yield estimator every time a harvest is logged with actual figures.
"""

from __future__ import annotations

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from microfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CropProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Growth parameters for one variety (e.g. "Pea Shoots")."""

    __tablename__ = "crop_profiles"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    average_yield_per_tray: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    soak_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    germination_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    light_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CropProfile id={self.id} name={self.name!r} "
            f"avg_yield={self.average_yield_per_tray}>"
        )
