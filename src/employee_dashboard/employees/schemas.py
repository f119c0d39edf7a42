from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import EmployeeStatus, Role

# Either a human-entered name or {"kind": "id" | "name", "value": ...}
RefInput = Optional[Union[str, Dict[str, Any]]]


class CreateEmployeeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1)
    role: Role = Role.EMPLOYEE
    employee_id: str = Field(alias="employeeId", min_length=1, max_length=50)
    department: RefInput = None
    position: str = Field(min_length=1, max_length=100)
    manager: RefInput = None
    salary: Optional[float] = Field(default=None, ge=0)
    hire_date: Optional[date] = Field(default=None, alias="hireDate")
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    phone: Optional[str] = None
    address: Optional[str] = None


class UpdateEmployeeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    employee_id: Optional[str] = Field(default=None, alias="employeeId", min_length=1, max_length=50)
    department: RefInput = None
    position: Optional[str] = Field(default=None, min_length=1, max_length=100)
    manager: RefInput = None
    salary: Optional[float] = Field(default=None, ge=0)
    hire_date: Optional[date] = Field(default=None, alias="hireDate")
    status: Optional[EmployeeStatus] = None


# Fields an EMPLOYEE may change on their own record
SELF_SERVICE_FIELDS = frozenset({"name", "email"})


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=MIN_PASSWORD_LENGTH)
