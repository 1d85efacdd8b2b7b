from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer

from database.engine import Base
from database.models.mixins import BigIntPK


class PrefixCounter(Base):
    """Per-prefix sequence backing job codes and user codes."""

    __tablename__: str = "prefix_counters"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    prefix: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
