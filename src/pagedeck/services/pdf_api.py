"""
PageDeck - PDF Processing Service Client

Thin httpx client for the external processing service: page manifest
previews, thumbnail bytes, and the organize / remove-pages tools. Every
call has one success shape and raises a PageDeckError subclass otherwise.
"""

import json
import os
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from pagedeck.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS
from pagedeck.editor.manifest import Manifest, parse_manifest
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.exceptions import (
    ApiError,
    ImageLoadFailure,
    LoadFailure,
    ManifestError,
    PageDeckError,
)
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger


class PdfApiClient:
    """Client for the processing service mounted under ``base_url``.

    Calls are blocking and meant to run on a worker thread.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        auth_token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service base URL, e.g. ``http://localhost:8080/api/pdf``
            timeout: Request timeout in seconds
            auth_token: Optional bearer token (cookie sessions need none)
            transport: Optional httpx transport, used by tests
        """
        headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ConfigManager) -> "PdfApiClient":
        return cls(
            base_url=config.get("api.base_url"),
            timeout=float(config.get("api.timeout", DEFAULT_REQUEST_TIMEOUT_SECONDS)),
            auth_token=config.get("api.auth_token"),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PdfApiClient":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def resolve(self, reference: str) -> str:
        """Turn a server-relative URL (e.g. ``/files/p1.png``) into an absolute one."""
        return str(httpx.URL(self._base_url).join(reference))

    def _post(self, path: str, pdf_path: str, fields: Mapping[str, str] | None = None) -> Any:
        url = self._url(path)
        data = {k: v for k, v in (fields or {}).items() if isinstance(v, str) and v}
        try:
            with open(pdf_path, "rb") as f:
                files = {"file": (os.path.basename(pdf_path), f, "application/pdf")}
                response = self._client.post(url, data=data, files=files)
        except OSError as e:
            raise LoadFailure(f"Cannot read {pdf_path}: {e}", source=pdf_path) from e
        except httpx.HTTPError as e:
            raise LoadFailure(f"Request to {url} failed: {e}", source=url) from e

        if not response.is_success:
            logger.error(
                f"PDF API request failed: url={url} status={response.status_code} "
                f"fields={sorted(data)}"
            )
            raise ApiError(url, response.status_code, response.text or response.reason_phrase)

        try:
            return response.json()
        except ValueError as e:
            raise ManifestError(f"Response from {url} is not JSON", source=url) from e

    def _download_url(self, path: str, pdf_path: str, fields: Mapping[str, str]) -> str:
        body = self._post(path, pdf_path, fields)
        url = body.get("downloadUrl") if isinstance(body, Mapping) else None
        if not isinstance(url, str) or not url:
            raise ManifestError("Invalid PDF API response: missing downloadUrl", source=path)
        return self.resolve(url)

    # --- Tools ---

    def preview(self, pdf_path: str) -> Manifest:
        """Fetch the page manifest of a document."""
        body = self._post("/preview", pdf_path)
        manifest = parse_manifest(body, source=pdf_path)
        logger.info(f"Preview manifest for {os.path.basename(pdf_path)}: {len(manifest)} page(s)")
        return manifest

    def fetch_image(self, image_reference: str) -> bytes:
        """Download the bytes of one thumbnail.

        Raises:
            ImageLoadFailure: On any transport error or non-2xx status
        """
        try:
            response = self._client.get(self.resolve(image_reference))
        except httpx.HTTPError as e:
            raise ImageLoadFailure(image_reference, str(e)) from e
        if not response.is_success:
            raise ImageLoadFailure(image_reference, f"HTTP {response.status_code}")
        return response.content

    def organize(self, pdf_path: str, payload: Mapping[str, Any]) -> str:
        """Export reordered / rotated / trimmed pages; returns the download URL."""
        fields = {"order": payload["order"]}
        rotations = payload.get("rotations") or []
        if rotations:
            fields["rotations"] = json.dumps(list(rotations))
        return self._download_url("/organize", pdf_path, fields)

    def remove_pages(self, pdf_path: str, pages: str) -> str:
        """Remove the pages named by a range string; returns the download URL."""
        return self._download_url("/remove-pages", pdf_path, {"pages": pages})

    def extract_pages(self, pdf_path: str, ranges: str) -> str:
        """Extract the pages named by a range string; returns the download URL."""
        return self._download_url(
            "/extract-pages", pdf_path, {"mode": "ranges", "ranges": ranges}
        )


def run_tool(
    call: Callable[[str], str], pdf_path: str
) -> tuple[str | None, PageDeckError | None]:
    """Run one blocking tool call and return ``(download_url, error)``.

    Meant for worker threads: nothing is raised, so the caller can always
    report back to the main loop.
    """
    try:
        return call(pdf_path), None
    except PageDeckError as e:
        return None, e
    except Exception as e:
        logger.error(f"Unexpected page tool error for {pdf_path}: {e}")
        return None, PageDeckError(_("The page tool failed unexpectedly"), details=str(e))
