from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import requests
import structlog
from django.conf import settings
from pydantic import ValidationError

from members_core.adapters.api_clients.base_api_client import BaseAPIClient
from members_core.core.application.dtos.caspio_dtos import CaspioRecordsPageDTO, CaspioTokenDTO
from members_core.core.domain.exceptions import CaspioAuthError, CaspioRequestError

logger = structlog.get_logger(__name__)


def quote_where_value(value: Any) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def build_where(equals: dict[str, Any] | None = None, clauses: list[str] | None = None) -> str | None:
    """`{"A": "x", "B": 1}` + ["Date_Modified>'...'"] -> `A='x' AND B='1' AND Date_Modified>'...'`"""
    parts = [f"{field}={quote_where_value(value)}" for field, value in (equals or {}).items()]
    parts.extend(c for c in (clauses or []) if c)
    return " AND ".join(parts) or None


# ╭──────────────────────────────────────────────╮
# │ Token provider                              │
# ╰──────────────────────────────────────────────╯
class CaspioTokenProvider(BaseAPIClient):
    """
    OAuth2 client-credentials exchange.

    Stateless: each call performs a fresh exchange, so every sync runs with
    its own short-lived token.
    """

    TOKEN_PATH = "/oauth/token"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or settings.CASPIO_BASE_URL,
            default_headers={"Accept": "application/json"},
            timeout=timeout or settings.CASPIO_TIMEOUT,
        )
        self.client_id = client_id if client_id is not None else settings.CASPIO_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.CASPIO_CLIENT_SECRET

    def get_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise CaspioAuthError("Caspio client credentials are not configured")

        try:
            dto = self._post_form(
                self.TOKEN_PATH,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                response_model=CaspioTokenDTO,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise CaspioAuthError(f"Caspio token request failed: {exc}", status_code=status) from exc
        except (requests.RequestException, ValidationError, ValueError) as exc:
            raise CaspioAuthError(f"Caspio token request failed: {exc}") from exc

        logger.debug("caspio.token_obtained", expires_in=dto.expires_in)
        return dto.access_token


# ╭──────────────────────────────────────────────╮
# │ Records client                              │
# ╰──────────────────────────────────────────────╯
class CaspioAPIClient(BaseAPIClient):
    """Read access to Caspio REST v2 tables."""

    RECORDS_PATH = "/rest/v2/tables/{table}/records"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        members_table: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or settings.CASPIO_BASE_URL,
            default_headers={"Accept": "application/json"},
            timeout=timeout or settings.CASPIO_TIMEOUT,
        )
        self.members_table = members_table or settings.CASPIO_MEMBERS_TABLE

    # -------------------------------------------------------------- one page ---------
    def fetch_records_page(  # noqa: PLR0913
        self,
        table: str,
        *,
        token: str,
        page_number: int,
        page_size: int,
        where: str | None = None,
        select: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"q.pageNumber": page_number, "q.pageSize": page_size}
        if where:
            params["q.where"] = where
        if select:
            params["q.select"] = select

        try:
            page = self._get(
                self.RECORDS_PATH.format(table=table),
                params=params,
                response_model=CaspioRecordsPageDTO,
                headers={"Authorization": f"Bearer {token}"},
            )
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise CaspioRequestError(
                f"Caspio page {page_number} of {table} failed: {exc}", page=page_number, status_code=status
            ) from exc
        except (requests.RequestException, ValidationError, ValueError) as exc:
            raise CaspioRequestError(
                f"Caspio page {page_number} of {table} failed: {exc}", page=page_number
            ) from exc
        return page.Result

    # -------------------------------------------------------------- pagination -------
    def iter_pages(  # noqa: PLR0913
        self,
        table: str,
        *,
        token: str,
        page_size: int,
        max_pages: int,
        where: str | None = None,
    ) -> Iterator[tuple[int, list[dict[str, Any]]]]:
        """
        Yields `(page_number, rows)` until a short page or `max_pages`.
        A failing page raises CaspioRequestError after the earlier pages were yielded.
        """
        for page_number in range(1, max_pages + 1):
            rows = self.fetch_records_page(
                table, token=token, page_number=page_number, page_size=page_size, where=where
            )
            logger.info("caspio.page", table=table, page=page_number, rows=len(rows))
            yield page_number, rows
            if len(rows) < page_size:
                return
        logger.warning("caspio.page_ceiling_reached", table=table, max_pages=max_pages)

    def iter_member_pages(
        self,
        *,
        token: str,
        page_size: int,
        max_pages: int,
        where: str | None = None,
    ) -> Iterator[tuple[int, list[dict[str, Any]]]]:
        return self.iter_pages(
            self.members_table, token=token, page_size=page_size, max_pages=max_pages, where=where
        )
