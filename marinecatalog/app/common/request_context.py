import uuid
from flask import g, request

REQUEST_ID_HEADER = "X-Request-ID"


def init_request_id() -> str:
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    g.request_id = rid
    return rid


def attach_request_id(response):
    """Mirror the request id back to the caller."""
    rid = getattr(g, "request_id", None)
    if rid:
        response.headers[REQUEST_ID_HEADER] = rid
    return response
