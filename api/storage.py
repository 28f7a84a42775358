"""In-memory upload store, keyed by owner token."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class StoredUpload:
    id: str
    owner: str
    file_name: str
    data: List[List[Any]] = field(default_factory=list)
    upload_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "fileName": self.file_name, "uploadDate": self.upload_date, "rowCount": len(self.data)}

    def detail(self) -> Dict[str, Any]:
        return {**self.summary(), "data": self.data}


# upload_id -> StoredUpload
UPLOADS: Dict[str, StoredUpload] = {}

# owner -> [upload_id, ...]
OWNER_UPLOADS: Dict[str, List[str]] = {}


def save_upload(owner: str, file_name: str, data: List[List[Any]]) -> StoredUpload:
    upload = StoredUpload(id=uuid.uuid4().hex, owner=owner, file_name=file_name, data=data)
    UPLOADS[upload.id] = upload
    OWNER_UPLOADS.setdefault(owner, []).append(upload.id)
    return upload


def list_uploads(owner: str) -> List[StoredUpload]:
    return [UPLOADS[i] for i in OWNER_UPLOADS.get(owner, []) if i in UPLOADS]


def get_upload(owner: str, upload_id: str) -> Optional[StoredUpload]:
    upload = UPLOADS.get(upload_id)
    if upload is None or upload.owner != owner:
        return None
    return upload


def delete_upload(owner: str, upload_id: str) -> bool:
    if get_upload(owner, upload_id) is None:
        return False
    UPLOADS.pop(upload_id, None)
    ids = OWNER_UPLOADS.get(owner, [])
    if upload_id in ids:
        ids.remove(upload_id)
    return True


def clear() -> None:
    UPLOADS.clear()
    OWNER_UPLOADS.clear()
