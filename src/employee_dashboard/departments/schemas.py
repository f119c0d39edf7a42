from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateDepartmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    manager_id: Optional[int] = Field(default=None, alias="managerId")


class UpdateDepartmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    manager_id: Optional[int] = Field(default=None, alias="managerId")
