"""JSON helpers for httpx clients."""

from typing import Any, TypeVar, overload

import httpx

from swan_fastapi.serializers import deserialize


T = TypeVar("T")


@overload
async def read_as_json(response: httpx.Response) -> Any: ...


@overload
async def read_as_json(response: httpx.Response, model: type[T]) -> T: ...


async def read_as_json(response: httpx.Response, model: Any = None) -> Any:
    """Read a response body and decode it as JSON.

    Args:
        response: The response, streamed or already read
        model: Optional type the decoded body is validated into

    Returns:
        The decoded body, or an instance of ``model``

    Raises:
        SerializationError: If the body is not JSON or does not match ``model``
    """
    await response.aread()
    return deserialize(response.text, model)


@overload
async def get_json(client: httpx.AsyncClient, url: httpx.URL | str) -> Any: ...


@overload
async def get_json(
    client: httpx.AsyncClient, url: httpx.URL | str, model: type[T]
) -> T: ...


async def get_json(
    client: httpx.AsyncClient,
    url: httpx.URL | str,
    model: Any = None,
) -> Any:
    """Send a GET request and decode the response body as JSON.

    Example:
        async with httpx.AsyncClient(base_url=API_URL) as client:
            user = await get_json(client, "/users/42", UserOut)

    Args:
        client: The client to send the request with
        url: Absolute URL, or relative to the client's ``base_url``
        model: Optional type the decoded body is validated into

    Returns:
        The decoded body, or an instance of ``model``

    Raises:
        httpx.HTTPStatusError: If the response status is not a success
        SerializationError: If the body is not JSON or does not match ``model``
    """
    response = await client.get(url)
    response.raise_for_status()
    return await read_as_json(response, model)
