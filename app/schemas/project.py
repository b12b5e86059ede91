"""
Project request schemas.

Dates travel as ``DD-MM-YYYY`` strings and are stored exactly as received;
they are only parsed here to check the format and the begin/end ordering.
Field names accept both snake_case and the camelCase used by existing
clients (``projectCode``, ``clientId``).
"""
import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DATE_FORMAT = "%d-%m-%Y"
DATE_PATTERN = re.compile(r"^\d{2}-\d{2}-\d{4}$")


def parse_project_date(value: str) -> date:
    if not DATE_PATTERN.match(value):
        raise ValueError("date must use the DD-MM-YYYY format")
    return datetime.strptime(value, DATE_FORMAT).date()


def check_date_order(begin: str, end: str) -> None:
    # Equal dates are accepted
    if parse_project_date(begin) > parse_project_date(end):
        raise ValueError("begin date must not be after the end date")


class ProjectAddress(BaseModel):
    street: str = Field(min_length=1)
    number: int = Field(ge=1)
    postal: int = Field(ge=1)
    city: str = Field(min_length=1)
    province: str = Field(min_length=1)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectCreate(_CamelModel):
    name: str = Field(min_length=1)
    project_code: str = Field(min_length=1)
    code: str = Field(min_length=1)
    address: ProjectAddress
    begin: str
    end: str
    notes: str = Field(min_length=1)
    client_id: str = Field(min_length=1)

    @field_validator("begin", "end")
    @classmethod
    def check_date(cls, value: str) -> str:
        parse_project_date(value)
        return value

    @model_validator(mode="after")
    def check_order(self) -> "ProjectCreate":
        check_date_order(self.begin, self.end)
        return self


class ProjectUpdate(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    project_code: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = Field(default=None, min_length=1)
    address: Optional[ProjectAddress] = None
    begin: Optional[str] = None
    end: Optional[str] = None
    notes: Optional[str] = Field(default=None, min_length=1)
    client_id: Optional[str] = Field(default=None, min_length=1)

    @field_validator("begin", "end")
    @classmethod
    def check_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_project_date(value)
        return value

    @model_validator(mode="after")
    def check_order(self) -> "ProjectUpdate":
        # The stored value fills in whichever side is missing; see the handler
        if self.begin is not None and self.end is not None:
            check_date_order(self.begin, self.end)
        return self
