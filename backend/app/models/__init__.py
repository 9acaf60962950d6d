from .request import ItemRequest, RequestStatus
