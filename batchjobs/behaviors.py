"""
Request behaviors: hooks that adjust every outgoing request of a call.

A behavior is any callable taking the `requests.Request` about to be
prepared. It may add headers or query parameters; it must not send anything.
"""

import uuid
from typing import Callable, Iterable, Optional

import requests

RequestBehavior = Callable[[requests.Request], None]


def apply_behaviors(request: requests.Request, behaviors: Optional[Iterable[RequestBehavior]]) -> requests.Request:
    for behavior in behaviors or ():
        behavior(request)
    return request


def client_request_id(value: Optional[str] = None, return_in_response: bool = True) -> RequestBehavior:
    """Tag requests with a client-request-id (a fresh uuid per request when not given)."""
    def behavior(request: requests.Request) -> None:
        request.headers["client-request-id"] = value or str(uuid.uuid4())
        if return_in_response:
            request.headers["return-client-request-id"] = "true"
    return behavior


def server_timeout(seconds: int) -> RequestBehavior:
    """Ask the service to give up on the request after `seconds` (max 30)."""
    def behavior(request: requests.Request) -> None:
        request.params["timeout"] = int(seconds)
    return behavior


def max_results(count: int) -> RequestBehavior:
    """Page size for listings (the service caps it at 1000)."""
    def behavior(request: requests.Request) -> None:
        if request.method == "GET":
            request.params["maxresults"] = int(count)
    return behavior
