from __future__ import annotations

from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from lexnav.citations.models import ExpandedSource, SectionResponse
from lexnav.core.config import get_settings
from lexnav.core.exceptions import RecoverableFetchFailure

logger = structlog.get_logger()


class SectionClient(Protocol):
    async def get_section(self, document_id: str, element_id: str) -> SectionResponse: ...

    async def expand_source(
        self,
        document_id: str,
        excerpt: str,
        section: Optional[str] = None,
        chunk_id: Optional[str] = None,
    ) -> ExpandedSource: ...


class HttpSectionClient:
    """Retrieval service client for section lookups and excerpt expansion."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.fetch_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpSectionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_section(self, document_id: str, element_id: str) -> SectionResponse:
        path = f"/documents/{quote(document_id, safe='')}/sections/{quote(element_id, safe='')}"
        payload = await self._request("GET", path)
        try:
            return SectionResponse.model_validate(payload)
        except ValidationError as exc:
            raise RecoverableFetchFailure(f"invalid section payload for {document_id}/{element_id}") from exc

    async def expand_source(
        self,
        document_id: str,
        excerpt: str,
        section: Optional[str] = None,
        chunk_id: Optional[str] = None,
    ) -> ExpandedSource:
        body: dict[str, Any] = {"excerpt": excerpt}
        if section:
            body["section"] = section
        if chunk_id:
            body["chunk_id"] = chunk_id
        payload = await self._request("POST", f"/documents/{quote(document_id, safe='')}/expand-source", json=body)
        try:
            return ExpandedSource.model_validate(payload)
        except ValidationError as exc:
            raise RecoverableFetchFailure(f"invalid expand-source payload for {document_id}") from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("section_fetch_failed", path=path, status=exc.response.status_code)
            raise RecoverableFetchFailure(f"{method} {path} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("section_fetch_failed", path=path, error=str(exc))
            raise RecoverableFetchFailure(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("section_fetch_failed", path=path, error="invalid json")
            raise RecoverableFetchFailure(f"{method} {path} returned invalid JSON") from exc
