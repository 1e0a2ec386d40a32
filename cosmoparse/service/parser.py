from __future__ import annotations

import logging
import time
from typing import Any, Optional, Tuple, Union

import httpx

from cosmoparse.config import Settings, load_settings
from cosmoparse.llm.client import CosmoClient, raise_for_status
from cosmoparse.schemas import HttpRequest, ParseRequest
from cosmoparse.service.endpoints import Endpoint, get_endpoint
from cosmoparse.utils.schema import as_schema


logger = logging.getLogger(__name__)

MAX_RETRIES = 3


def _prepare(
    schema: Any,
    payload: str,
    instruction: str,
    api_key: Optional[str],
    model: Optional[str],
    example: Any,
    endpoint: Union[str, Endpoint],
) -> Tuple[Settings, Endpoint, HttpRequest]:
    """Everything that happens before the first byte goes out: config, schema, example."""
    settings = load_settings(api_key=api_key, model=model)
    ep = get_endpoint(endpoint)

    shape = as_schema(schema)
    json_schema = shape.describe()
    if example is not None:
        shape.validate(example)

    req = ParseRequest(
        json_schema=json_schema,
        payload=payload,
        instruction=instruction,
        model=settings.model,
        example=example,
    )
    return settings, ep, ep.build_request(req, settings.api_key, settings.base_url)


def _should_retry(ep: Endpoint, resp: httpx.Response, attempt: int, max_retries: int) -> bool:
    if resp.status_code != 400 or not ep.retry_on_bad_request:
        return False
    if attempt >= max_retries:
        return False
    logger.warning("Bad request (400) from %s endpoint, retry %d/%d", ep.name, attempt + 1, max_retries)
    return True


def _finish(ep: Endpoint, resp: httpx.Response, settings: Settings, payload: str, attempts: int, start: float) -> Any:
    raise_for_status(resp)
    data = ep.extract_result(resp)
    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        "Parsed via %s endpoint: model=%s attempts=%d payload_chars=%d elapsed_ms=%d",
        ep.name, settings.model, attempts, len(payload), elapsed_ms,
    )
    return data


def parse(
    schema: Any,
    payload: str,
    instruction: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    example: Any = None,
    endpoint: Union[str, Endpoint] = "direct",
    client: Optional[CosmoClient] = None,
    max_retries: int = MAX_RETRIES,
) -> Any:
    """
    Parse `payload` into the shape described by `schema` using the remote service.

    The API key comes from `api_key` or the COSMO_AI_KEY environment variable and
    must start with "ai_". If `example` is given it is validated against `schema`
    before any request is sent. On the direct endpoint an HTTP 400 is retried up
    to `max_retries` times with the same arguments.

    Raises:
        ConfigurationError: missing or malformed API key.
        ValidationError: `example` does not match `schema`.
        TransportError: network failure, error status, or 400 after all retries.

    The returned value is not validated. The GraphQL endpoint returns None when
    the response lacks data.parse_test.parsed.
    """
    settings, ep, request = _prepare(schema, payload, instruction, api_key, model, example, endpoint)
    client = client or CosmoClient.get(settings.timeout)

    start = time.time()
    attempt = 0
    while True:
        resp = client.send(request)
        if _should_retry(ep, resp, attempt, max_retries):
            attempt += 1
            continue
        return _finish(ep, resp, settings, payload, attempt + 1, start)


async def aparse(
    schema: Any,
    payload: str,
    instruction: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    example: Any = None,
    endpoint: Union[str, Endpoint] = "direct",
    client: Optional[CosmoClient] = None,
    max_retries: int = MAX_RETRIES,
) -> Any:
    """
    Async variant of `parse`; same arguments, errors and retry policy.

    Without an explicit `client` the call opens and closes its own connection
    pool, so it is safe to run under any event loop.
    """
    settings, ep, request = _prepare(schema, payload, instruction, api_key, model, example, endpoint)
    if client is not None:
        return await _asend_with_retry(client, ep, request, settings, payload, max_retries)
    async with CosmoClient(timeout=settings.timeout) as own_client:
        return await _asend_with_retry(own_client, ep, request, settings, payload, max_retries)


async def _asend_with_retry(
    client: CosmoClient,
    ep: Endpoint,
    request: HttpRequest,
    settings: Settings,
    payload: str,
    max_retries: int,
) -> Any:
    start = time.time()
    attempt = 0
    while True:
        resp = await client.asend(request)
        if _should_retry(ep, resp, attempt, max_retries):
            attempt += 1
            continue
        return _finish(ep, resp, settings, payload, attempt + 1, start)
