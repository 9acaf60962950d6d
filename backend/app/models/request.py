from sqlalchemy import Column, String, DateTime, Index
from datetime import datetime, timezone
from typing import Any, Dict
import enum
import uuid

from app.core.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id() -> str:
    return uuid.uuid4().hex


class ItemRequest(Base):
    __tablename__ = "item_requests"

    id = Column(String(32), primary_key=True, default=new_request_id)
    requestor_name = Column(String(30), nullable=False)
    item_requested = Column(String(100), nullable=False)
    request_created_date = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    last_edited_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), default=RequestStatus.PENDING.value, nullable=False, index=True)

    __table_args__ = (
        Index("ix_item_requests_status_created", "status", "request_created_date"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot in the API's camelCase shape."""
        return {
            "id": self.id,
            "requestorName": self.requestor_name,
            "itemRequested": self.item_requested,
            "requestCreatedDate": self.request_created_date,
            "lastEditedDate": self.last_edited_date,
            "status": self.status,
        }
