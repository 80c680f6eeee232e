from __future__ import annotations

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class SavedForm(Base):
    __tablename__ = "saved_forms"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tour_name: Mapped[str] = mapped_column(String, default="")
    customer_name: Mapped[str] = mapped_column(String, default="")
    start_date: Mapped[Optional[str]] = mapped_column(String)
    end_date: Mapped[Optional[str]] = mapped_column(String)
    num_travellers: Mapped[str] = mapped_column(String, default="")
    cost_per_person: Mapped[str] = mapped_column(String, default="")
    package_type: Mapped[str] = mapped_column(String, default="domestic")
    created_at: Mapped[str] = mapped_column(String)
    updated_at: Mapped[str] = mapped_column(String, index=True)
    data: Mapped[str] = mapped_column(Text)


class FormDraft(Base):
    __tablename__ = "form_drafts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    data: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[str] = mapped_column(String)
