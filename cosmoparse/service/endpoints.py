from __future__ import annotations

import json
import logging
from typing import Any, Dict, Protocol, Union

import httpx
from pydantic_core import to_jsonable_python

from cosmoparse.config import DEFAULT_BASE_URL
from cosmoparse.llm.client import decode_json
from cosmoparse.schemas import HttpRequest, ParseRequest


logger = logging.getLogger(__name__)


PARSE_MUTATION = """
mutation parse($schema: String!, $example: String, $payload: String!, $instruction: String!) {
  parse_test(schema: $schema, example: $example, payload: $payload, instruction: $instruction) {
    parsed
  }
}
""".strip()


class Endpoint(Protocol):
    """
    Wire protocol for one remote endpoint.

    `retry_on_bad_request` marks whether HTTP 400 responses are retried.
    """

    name: str
    retry_on_bad_request: bool

    def build_request(self, req: ParseRequest, api_key: str, base_url: str) -> HttpRequest: ...

    def extract_result(self, resp: httpx.Response) -> Any: ...


class DirectEndpoint:
    """REST endpoint at /parse; the response body is the parsed value."""

    name = "direct"
    retry_on_bad_request = True

    def build_request(self, req: ParseRequest, api_key: str, base_url: str = DEFAULT_BASE_URL) -> HttpRequest:
        return HttpRequest(
            url=f"{base_url}/parse",
            json_body={
                "model": req.model,
                "schema": json.dumps(req.json_schema),
                "payload": req.payload,
                "instruction": req.instruction,
            },
            headers={"api-key": api_key},
        )

    def extract_result(self, resp: httpx.Response) -> Any:
        return decode_json(resp)


class GraphQLEndpoint:
    """Shared GraphQL endpoint; the value sits at data.parse_test.parsed."""

    name = "graphql"
    retry_on_bad_request = False

    def build_request(self, req: ParseRequest, api_key: str, base_url: str = DEFAULT_BASE_URL) -> HttpRequest:
        example = json.dumps(to_jsonable_python(req.example)) if req.example is not None else None
        return HttpRequest(
            url=f"{base_url}/graphql",
            json_body={
                "query": PARSE_MUTATION,
                "variables": {
                    "schema": json.dumps(req.json_schema),
                    "example": example,
                    "payload": req.payload,
                    "instruction": req.instruction,
                },
            },
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
            },
        )

    def extract_result(self, resp: httpx.Response) -> Any:
        body = decode_json(resp)
        # A missing level yields None rather than an error
        node: Any = body
        for key in ("data", "parse_test", "parsed"):
            if not isinstance(node, dict) or key not in node:
                errors = body.get("errors") if isinstance(body, dict) else None
                logger.warning("GraphQL response has no %s field (errors=%s)", key, errors)
                return None
            node = node[key]
        return node


ENDPOINTS: Dict[str, Endpoint] = {
    DirectEndpoint.name: DirectEndpoint(),
    GraphQLEndpoint.name: GraphQLEndpoint(),
}


def get_endpoint(endpoint: Union[str, Endpoint]) -> Endpoint:
    if not isinstance(endpoint, str):
        return endpoint
    try:
        return ENDPOINTS[endpoint]
    except KeyError:
        raise ValueError(f"Unknown endpoint {endpoint!r}, expected one of {sorted(ENDPOINTS)}") from None
