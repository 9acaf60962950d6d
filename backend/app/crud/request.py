# app/crud/request.py
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import PAGINATION_PAGE_SIZE
from app.core.errors import NotFoundError
from app.metrics import requests_created_total, status_updates_total
from app.models.request import ItemRequest, RequestStatus, utcnow
from app.services.batch import BatchResult, run_batch
from app.validation.requests import (
    validate_batch_delete_request,
    validate_batch_edit_status_request,
    validate_create_item_request,
    validate_edit_status_request,
)

logger = logging.getLogger(__name__)


def get_item_requests(
    db: Session,
    page: int = 1,
    status: Optional[RequestStatus] = None,
    page_size: int = PAGINATION_PAGE_SIZE,
) -> Tuple[List[ItemRequest], int]:
    """
    One page of requests, newest first, plus the count matching the filter.
    Pages past the end come back empty.
    """
    q = db.query(ItemRequest)
    if status is not None:
        q = q.filter(ItemRequest.status == RequestStatus(status).value)
    total = q.count()
    offset = (page - 1) * page_size
    if offset >= total:
        return [], total
    rows = (
        q.order_by(ItemRequest.request_created_date.desc(), ItemRequest.id.desc())
        .offset(offset)
        .limit(page_size)
        .all()
    )
    return rows, total


def create_new_request(db: Session, payload: Any) -> ItemRequest:
    """Insert a pending request; created and last-edited share one timestamp."""
    data = validate_create_item_request(payload)
    now = utcnow()
    row = ItemRequest(
        requestor_name=data.requestor_name,
        item_requested=data.item_requested,
        request_created_date=now,
        last_edited_date=now,
        status=RequestStatus.PENDING.value,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    requests_created_total.inc()
    logger.info("[request] created id=%s", row.id)
    return row


def _set_status(db: Session, request_id: str, status: RequestStatus, now: datetime) -> Optional[ItemRequest]:
    row = db.get(ItemRequest, request_id)
    if row is None:
        return None
    row.status = status.value
    row.last_edited_date = now
    db.commit()
    db.refresh(row)
    status_updates_total.labels(status=status.value).inc()
    return row


def update_request_status(db: Session, payload: Any) -> ItemRequest:
    data = validate_edit_status_request(payload)
    row = _set_status(db, data.id, data.status, utcnow())
    if row is None:
        raise NotFoundError(data.id)
    return row


def batch_update_request_statuses(db: Session, payload: Any) -> BatchResult[Dict[str, Any]]:
    """
    Validate every (id, status) pair, then apply them one by one.

    Misses and store errors land in `failed`; hits are snapshotted straight
    away so a later rollback can't expire them.
    """
    data = validate_batch_edit_status_request(payload)

    def apply(update) -> Optional[Dict[str, Any]]:
        # per-item timestamp keeps last_edited_date non-decreasing across writers
        row = _set_status(db, update.id, update.status, utcnow())
        return row.to_dict() if row is not None else None

    return run_batch(
        "update",
        data.updates,
        key=lambda u: u.id,
        apply=apply,
        on_error=lambda _u: db.rollback(),
    )


def _delete_one(db: Session, request_id: str) -> Optional[str]:
    row = db.get(ItemRequest, request_id)
    if row is None:
        return None
    db.delete(row)
    db.commit()
    return request_id


def batch_delete_requests(db: Session, payload: Any) -> BatchResult[str]:
    data = validate_batch_delete_request(payload)
    return run_batch(
        "delete",
        data.ids,
        key=lambda request_id: request_id,
        apply=lambda request_id: _delete_one(db, request_id),
        on_error=lambda _id: db.rollback(),
    )
