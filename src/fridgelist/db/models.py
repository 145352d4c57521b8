"""SQLAlchemy models representing the local cache tables."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for fridgelist ORM models."""


class CachedItemORM(Base):
    """Shopping list entry mirrored from the fridge API.

    Column names follow the API wire format so rows and payloads line up one to one.
    """

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    ingredient_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ingredient_nom: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    quantite: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unite: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    prix_unitaire: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    prix_estime: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    categorie: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    achete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    quantite_achetee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quantite_restante: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
