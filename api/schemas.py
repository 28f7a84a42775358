from __future__ import annotations

from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class UploadSummaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    file_name: str = Field(alias="fileName")
    upload_date: datetime = Field(alias="uploadDate")
    row_count: int = Field(default=0, alias="rowCount")


class UploadDetailModel(UploadSummaryModel):
    data: List[List[Any]] = Field(default_factory=list)


class UploadCreatedResponse(BaseModel):
    message: str
    upload: UploadSummaryModel


class MessageResponse(BaseModel):
    message: str
