from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_LIST = "Unknown List"


def _text(v):
    return "" if v is None else v


class ExternalList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, v):
        return _text(v)


class ExternalMember(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    full_name: str = Field(default="", alias="fullName")
    username: Optional[str] = None

    @field_validator("full_name", mode="before")
    @classmethod
    def _null_full_name(cls, v):
        return _text(v)


class ExternalCard(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str = ""
    desc: str = ""
    id_list: str = Field(default="", alias="idList")
    list_name: Optional[str] = Field(default=None, alias="listName")
    url: str = ""
    id_members: List[str] = Field(default_factory=list, alias="idMembers")

    @field_validator("name", "desc", "id_list", "url", mode="before")
    @classmethod
    def _null_text(cls, v):
        return _text(v)

    @field_validator("id_members", mode="before")
    @classmethod
    def _null_members(cls, v):
        return v or []

    @property
    def title(self) -> str:
        return self.name


class BoardData(BaseModel):
    lists: List[ExternalList] = Field(default_factory=list)
    cards: List[ExternalCard] = Field(default_factory=list)
    members: List[ExternalMember] = Field(default_factory=list)
