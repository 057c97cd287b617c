from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Literal, Optional

Dir = Literal["asc", "desc"]

class ListFilter(BaseModel):
    column: str = Field(..., min_length=1, max_length=100)
    value: str = ""

class ListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1, alias="pageSize")
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    sort_direction: Dir = Field(default="asc", alias="sortDirection")
    filters: List[ListFilter] = []

    @field_validator("sort_by", mode="before")
    @classmethod
    def _blank_sort_is_none(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("sort_direction", mode="before")
    @classmethod
    def _normalize_direction(cls, value):
        if value is None:
            return "asc"
        return str(value).strip().lower()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

class ListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: List[dict[str, Any]]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")
