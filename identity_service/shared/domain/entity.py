# 📄 File: identity_service/shared/domain/entity.py
# 🧭 Purpose (Layman Explanation):
# Every record the service stores carries the same bookkeeping: who created it and when,
# who last changed it and when, and whether it has been "deleted" (hidden, not erased).
# 🧪 Purpose (Technical Summary):
# SQLAlchemy declarative mixin defining identity, audit-stamp and soft-delete columns
# shared by all persisted entities; the common supertype the repository and the audit
# interceptor operate on polymorphically.
# 🔗 Dependencies:
# SQLAlchemy ORM (Mapped, mapped_column), uuid, datetime
# 🔄 Connected Modules / Calls From:
# Audit interceptor, generic repository, concrete entity models

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

# Actor recorded when a write happens outside any caller-supplied context.
SYSTEM_ACTOR = "system"

# Actor recorded for writes made by unauthenticated endpoints (registration, resets).
ANONYMOUS_ACTOR = "anonymous"


class BaseEntity:
    """
    Common identity, audit and soft-delete fields for all persisted records.

    - id: globally unique, assigned before persistence, never changed afterwards
    - created_at / created_by: stamped once, on first successful flush
    - modified_at / modified_by: stamped on every later flush of the entity
    - is_deleted: True hides the row from every normal read
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_by: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    modified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    modified_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        index=True,
    )
