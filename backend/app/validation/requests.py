# app/validation/requests.py
"""
Boundary parsing for /api/request payloads.

Raw JSON goes in, a frozen pydantic value comes out; nothing past this module
re-checks shape. Any rule violation raises InvalidInputError for the whole
payload, so a batch with one bad entry is rejected before the store is touched.
"""
from __future__ import annotations
import logging
from typing import Annotated, Any, List, Optional, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictStr, ValidationError

from app.core.errors import InvalidInputError
from app.models.request import RequestStatus

logger = logging.getLogger(__name__)

NAME_MIN, NAME_MAX = 3, 30
ITEM_MIN, ITEM_MAX = 2, 100

M = TypeVar("M", bound=BaseModel)


def _bounded(lower: int, upper: int):
    def check(value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        if len(value) < lower or len(value) > upper:
            raise ValueError(f"length must be between {lower} and {upper}")
        return value
    return check


def _non_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


RequestorName = Annotated[StrictStr, AfterValidator(_bounded(NAME_MIN, NAME_MAX))]
ItemName = Annotated[StrictStr, AfterValidator(_bounded(ITEM_MIN, ITEM_MAX))]
RequestId = Annotated[StrictStr, AfterValidator(_non_blank)]


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class CreateItemRequest(_Payload):
    requestor_name: RequestorName = Field(alias="requestorName")
    item_requested: ItemName = Field(alias="itemRequested")


class EditStatusRequest(_Payload):
    id: RequestId
    status: RequestStatus


class BatchEditStatusRequest(_Payload):
    updates: List[EditStatusRequest] = Field(min_length=1)


class BatchDeleteRequest(_Payload):
    ids: List[RequestId] = Field(min_length=1)


class ListQuery(_Payload):
    page: int = Field(default=1, ge=1)
    status: Optional[RequestStatus] = None


def _parse(model: Type[M], payload: Any, what: str) -> M:
    if not isinstance(payload, dict):
        raise InvalidInputError(what)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.debug("[validation] %s rejected: %s", what, e.errors(include_url=False))
        raise InvalidInputError(what) from e


def validate_create_item_request(payload: Any) -> CreateItemRequest:
    return _parse(CreateItemRequest, payload, "created item request")


def validate_edit_status_request(payload: Any) -> EditStatusRequest:
    return _parse(EditStatusRequest, payload, "edit item request")


def validate_batch_edit_status_request(payload: Any) -> BatchEditStatusRequest:
    return _parse(BatchEditStatusRequest, payload, "batch edit item request")


def validate_batch_delete_request(payload: Any) -> BatchDeleteRequest:
    return _parse(BatchDeleteRequest, payload, "batch delete request")


def validate_list_query(page: Optional[str] = None, status: Optional[str] = None) -> ListQuery:
    raw = {}
    if page is not None:
        raw["page"] = page
    if status:
        raw["status"] = status
    return _parse(ListQuery, raw, "list query")
