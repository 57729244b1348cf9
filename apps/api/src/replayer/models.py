from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from replayer.db import Base


class StreamRecord(Base):
    __tablename__ = "streams"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    broker_address: Mapped[str] = mapped_column(String(255), nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    items: Mapped[list[Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
