from typing import Protocol

import httpx


class Transport(Protocol):
    """Sends a built request and returns the response.

    ``httpx.AsyncClient`` satisfies this protocol. Implementations signal
    that no response could be obtained by raising ``httpx.HTTPError`` or
    ``OSError``.
    """

    async def send(self, request: httpx.Request) -> httpx.Response: ...
