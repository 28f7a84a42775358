from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from core.config import AnalyticsConfig
from core.data import Row

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Upload could not be retrieved or was malformed."""


@dataclass(frozen=True)
class Upload:
    file_name: str
    data: List[Row] = field(default_factory=list)


def fetch_upload(
    upload_id: str,
    token: str,
    *,
    config: Optional[AnalyticsConfig] = None,
    client: Optional[httpx.Client] = None,
) -> Upload:
    """GET /api/uploads/{id} from the upload service and return its parsed table."""
    config = config or AnalyticsConfig()
    owns_client = client is None
    client = client or httpx.Client(base_url=config.api_base_url, timeout=config.fetch_timeout)
    try:
        response = client.get(f"/api/uploads/{upload_id}", headers={"Authorization": token or ""})
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as exc:
        raise FetchError(f"Upload {upload_id} request failed with status {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise FetchError(f"Upload {upload_id} could not be fetched: {exc}") from exc
    finally:
        if owns_client:
            client.close()

    data = payload.get("data") if isinstance(payload, dict) else None
    if data is None:
        data = []
    if not isinstance(data, list) or not all(isinstance(r, list) for r in data):
        raise FetchError(f"Upload {upload_id} returned a malformed table")
    logger.info("Fetched upload %s (%d rows)", upload_id, len(data))
    return Upload(file_name=str(payload.get("fileName") or ""), data=data)
