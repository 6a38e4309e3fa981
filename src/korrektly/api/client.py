"""Authenticated HTTP client for the Korrektly API."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from korrektly.api.types import (
    ApiErrorResponse,
    AutocompleteContentOnlyResponse,
    AutocompleteRequest,
    AutocompleteResponse,
    ChunkRequest,
    ChunkResponse,
    ClickRequest,
    ClickResponse,
    SearchRequest,
    SearchResponse,
)
from korrektly.utils.text import truncate

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://korrektly.com"
ERROR_SNIPPET_CHARS = 500


class ApiError(Exception):
    """Raised when a request fails or the server answers with something unexpected.

    ``status_code`` is ``0`` when the request never produced a response.
    ``detail`` holds the decoded JSON error body when the server sent one,
    otherwise a truncated text snippet (or ``None``). ``body`` is that JSON
    parsed as the API's standard error envelope, when it fits one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        reason: str = "",
        detail: Any = None,
        body: ApiErrorResponse | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.detail = detail
        self.body = body


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


def _parse(model: type[ResponseModel], data: dict[str, Any]) -> ResponseModel:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ApiError(
            f"Unexpected response shape for {model.__name__}: {exc}", detail=data
        ) from exc


def _error_body(detail: Any) -> ApiErrorResponse | None:
    if not isinstance(detail, dict):
        return None
    try:
        return ApiErrorResponse.model_validate(detail)
    except ValidationError:
        return None


def _error_from_response(response: httpx.Response) -> ApiError:
    reason = response.reason_phrase
    message = f"API request failed: {response.status_code} {reason}"
    detail: Any = None
    body: ApiErrorResponse | None = None
    if _is_json(response):
        try:
            detail = response.json()
            message += f"\nError details: {json.dumps(detail)}"
        except ValueError:
            LOGGER.debug("Error response advertised JSON but could not be decoded")
        else:
            body = _error_body(detail)
    else:
        detail = truncate(response.text, ERROR_SNIPPET_CHARS)
        if detail:
            message += f"\nResponse body: {detail}"
    return ApiError(
        message, status_code=response.status_code, reason=reason, detail=detail, body=body
    )


class Korrektly:
    """Thin request/response wrapper around the Korrektly REST API.

    Retries are not handled here; callers such as
    :class:`korrektly.index.uploader.BatchUploader` decide how to recover.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
        )

    def __enter__(self) -> "Korrektly":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        endpoint: str,
        method: str = "POST",
        body: BaseModel | dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send ``body`` as JSON to ``endpoint`` and return the decoded response."""
        if isinstance(body, BaseModel):
            payload: Any = body.model_dump(mode="json", exclude_none=True)
        else:
            payload = body

        LOGGER.debug("%s %s%s", method, self.base_url, endpoint)
        try:
            response = self._client.request(method, endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise ApiError(f"API request failed: {exc}") from exc

        if not response.is_success:
            raise _error_from_response(response)

        if not _is_json(response):
            content_type = response.headers.get("content-type")
            raise ApiError(
                f"Expected JSON response but got {content_type}.\n"
                f"Response body: {truncate(response.text, ERROR_SNIPPET_CHARS)}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                detail=truncate(response.text, ERROR_SNIPPET_CHARS),
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"Malformed JSON response: {exc}",
                status_code=response.status_code,
                reason=response.reason_phrase,
            ) from exc

    @staticmethod
    def _dataset_endpoint(dataset_id: str, action: str) -> str:
        return f"/api/v1/datasets/{dataset_id}/{action}"

    def autocomplete(
        self, dataset_id: str, request: AutocompleteRequest
    ) -> AutocompleteResponse | AutocompleteContentOnlyResponse:
        """Prefix suggestions; ``content_only`` requests get the minimal shape back."""
        data = self.request(self._dataset_endpoint(dataset_id, "autocomplete"), body=request)
        if request.content_only or "data" not in data:
            return _parse(AutocompleteContentOnlyResponse, data)
        return _parse(AutocompleteResponse, data)

    def create_chunks(self, dataset_id: str, request: ChunkRequest) -> ChunkResponse:
        """Create or upsert a single chunk or a batch of up to 120 chunks."""
        data = self.request(self._dataset_endpoint(dataset_id, "chunks"), body=request)
        return _parse(ChunkResponse, data)

    def search(self, dataset_id: str, request: SearchRequest) -> SearchResponse:
        data = self.request(self._dataset_endpoint(dataset_id, "search"), body=request)
        return _parse(SearchResponse, data)

    def track_click(self, dataset_id: str, request: ClickRequest) -> ClickResponse:
        data = self.request(self._dataset_endpoint(dataset_id, "clicks"), body=request)
        return _parse(ClickResponse, data)
