from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# BIGSERIAL on postgres, INTEGER PRIMARY KEY (rowid alias) on sqlite
BigIntId = BigInteger().with_variant(Integer(), "sqlite")

# JSONB on postgres, plain JSON everywhere else
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()


class BasePublic(Base):
    """Common columns of every cache table.

    ``id``, ``created_at`` and ``updated_at`` are generated by the database and
    are never part of an insert; ``id`` and ``created_at`` are never updated.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
