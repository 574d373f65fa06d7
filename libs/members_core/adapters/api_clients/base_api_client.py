from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import urljoin

import requests
import structlog
from pydantic import BaseModel
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

T = TypeVar("T", bound=BaseModel)


class BaseAPIClient:
    """
    Small HTTP helper with:
      • exponential retry on 5xx (GET only, urllib3 Retry)
      • configurable timeout
      • pydantic validation of every JSON response
    """

    def __init__(
        self,
        *,
        base_url: str,
        default_headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        retries: int = 3,
    ) -> None:
        self.log = structlog.get_logger(__name__).bind(component=type(self).__name__)
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout

        self.session = requests.Session()
        if default_headers:
            self.session.headers.update(default_headers)

        retry_cfg = Retry(
            total=retries,
            backoff_factor=0.3,
            status_forcelist=[500, 502, 503, 504],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_cfg)
        for scheme in ("https://", "http://"):
            self.session.mount(scheme, adapter)

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    # ------------------------------------------------------------------ GET ----------
    def _get(
        self,
        path: str,
        *,
        params: dict[str, Any],
        response_model: type[T],
        headers: dict[str, str] | None = None,
    ) -> T:
        url = self._url(path)
        log = self.log.bind(method="GET", url=url, model=response_model.__name__)
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            log.debug("http.response", status_code=resp.status_code)
            resp.raise_for_status()
            return response_model.model_validate(resp.json())
        except Exception as exc:  # noqa: BLE001
            log.error("http.get_failed", error=str(exc))
            raise

    # ------------------------------------------------------------------ POST ---------
    def _post_form(
        self,
        path: str,
        *,
        data: dict[str, Any],
        response_model: type[T],
        headers: dict[str, str] | None = None,
    ) -> T:
        url = self._url(path)
        log = self.log.bind(method="POST", url=url, model=response_model.__name__)
        try:
            resp = self.session.post(url, data=data, headers=headers, timeout=self.timeout)
            log.debug("http.response", status_code=resp.status_code)
            resp.raise_for_status()
            return response_model.model_validate(resp.json())
        except Exception as exc:  # noqa: BLE001
            # never log the form body: it carries the client secret
            log.error("http.post_failed", error=str(exc))
            raise
