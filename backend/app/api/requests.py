from datetime import datetime
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import InvalidInputError
from app.crud.request import (
    batch_delete_requests,
    batch_update_request_statuses,
    create_new_request,
    get_item_requests,
    update_request_status,
)
from app.validation.requests import validate_list_query

router = APIRouter()


class ItemRequestOut(BaseModel):
    id: str
    requestorName: str
    itemRequested: str
    requestCreatedDate: datetime
    lastEditedDate: Optional[datetime] = None
    status: str

class RequestPage(BaseModel):
    requests: List[ItemRequestOut]
    totalCount: int
    page: int

class BatchUpdateOut(BaseModel):
    updated: List[ItemRequestOut]
    failed: List[str]

class BatchDeleteOut(BaseModel):
    deletedCount: int
    failed: List[str]


async def json_body(request: Request) -> Any:
    # Malformed or empty JSON counts as invalid input
    try:
        return await request.json()
    except ValueError:
        raise InvalidInputError("JSON body")


@router.get("/api/request", response_model=RequestPage)
def list_requests(page: Optional[str] = None, status: Optional[str] = None,
                  db: Session = Depends(get_db)):
    query = validate_list_query(page, status)
    rows, total = get_item_requests(db, query.page, query.status)
    return {"requests": [r.to_dict() for r in rows], "totalCount": total, "page": query.page}

@router.put("/api/request", response_model=ItemRequestOut, status_code=201)
def create_request(body: Any = Depends(json_body), db: Session = Depends(get_db)):
    return create_new_request(db, body).to_dict()

@router.patch("/api/request", response_model=Union[BatchUpdateOut, ItemRequestOut])
def edit_request_status(body: Any = Depends(json_body), db: Session = Depends(get_db)):
    # {"updates": [...]} is a batch; an empty list is still a batch and gets rejected
    if isinstance(body, dict) and isinstance(body.get("updates"), list):
        result = batch_update_request_statuses(db, body)
        return {"updated": result.succeeded, "failed": result.failed}
    return update_request_status(db, body).to_dict()

@router.delete("/api/request", response_model=BatchDeleteOut)
def delete_requests(body: Any = Depends(json_body), db: Session = Depends(get_db)):
    result = batch_delete_requests(db, body)
    return {"deletedCount": len(result.succeeded), "failed": result.failed}
