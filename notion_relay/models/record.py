"""Pydantic models for Notion property payloads and normalized records."""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

Scalar = bool | int | float | str | None


class TextFragment(BaseModel):
    """One element of a title or rich_text array."""

    plain_text: str


class SelectOption(BaseModel):
    """Option of a select, multi_select or status property."""

    name: str


class DateValue(BaseModel):
    """Date property value; only the start is projected."""

    start: str
    end: str | None = None


class PersonDetails(BaseModel):
    email: str | None = None


class Person(BaseModel):
    """User referenced by a people property."""

    name: str | None = None
    email: str | None = None
    person: PersonDetails | None = None

    @property
    def display(self) -> str | None:
        """Name if present, otherwise the best available email."""
        if self.name:
            return self.name
        if self.person is not None and self.person.email:
            return self.person.email
        return self.email


class FileRef(BaseModel):
    name: str


class _Property(BaseModel):
    def extract(self) -> Scalar:
        raise NotImplementedError


class TitleProperty(_Property):
    type: Literal["title"]
    title: list[TextFragment]

    def extract(self) -> Scalar:
        return self.title[0].plain_text if self.title else None


class RichTextProperty(_Property):
    type: Literal["rich_text"]
    rich_text: list[TextFragment]

    def extract(self) -> Scalar:
        return self.rich_text[0].plain_text if self.rich_text else None


class SelectProperty(_Property):
    type: Literal["select"]
    select: SelectOption | None = None

    def extract(self) -> Scalar:
        return self.select.name if self.select is not None else None


class MultiSelectProperty(_Property):
    type: Literal["multi_select"]
    multi_select: list[SelectOption]

    def extract(self) -> Scalar:
        if not self.multi_select:
            return None
        return ", ".join(option.name for option in self.multi_select)


class DateProperty(_Property):
    type: Literal["date"]
    date: DateValue | None = None

    def extract(self) -> Scalar:
        return self.date.start if self.date is not None else None


class NumberProperty(_Property):
    type: Literal["number"]
    number: int | float | None = None

    def extract(self) -> Scalar:
        return self.number


class EmailProperty(_Property):
    type: Literal["email"]
    email: str | None = None

    def extract(self) -> Scalar:
        return self.email


class UrlProperty(_Property):
    type: Literal["url"]
    url: str | None = None

    def extract(self) -> Scalar:
        return self.url


class PhoneNumberProperty(_Property):
    type: Literal["phone_number"]
    phone_number: str | None = None

    def extract(self) -> Scalar:
        return self.phone_number


class CheckboxProperty(_Property):
    type: Literal["checkbox"]
    checkbox: bool | None = None

    def extract(self) -> Scalar:
        return self.checkbox


class PeopleProperty(_Property):
    type: Literal["people"]
    people: list[Person]

    def extract(self) -> Scalar:
        names = [p.display for p in self.people if p.display]
        return ", ".join(names) if names else None


class StatusProperty(_Property):
    type: Literal["status"]
    status: SelectOption | None = None

    def extract(self) -> Scalar:
        return self.status.name if self.status is not None else None


class FilesProperty(_Property):
    type: Literal["files"]
    files: list[FileRef]

    def extract(self) -> Scalar:
        return self.files[0].name if self.files else None


class CreatedTimeProperty(_Property):
    type: Literal["created_time"]
    created_time: str | None = None

    def extract(self) -> Scalar:
        return self.created_time


class LastEditedTimeProperty(_Property):
    type: Literal["last_edited_time"]
    last_edited_time: str | None = None

    def extract(self) -> Scalar:
        return self.last_edited_time


PropertyValue = Annotated[
    Union[
        TitleProperty,
        RichTextProperty,
        SelectProperty,
        MultiSelectProperty,
        DateProperty,
        NumberProperty,
        EmailProperty,
        UrlProperty,
        PhoneNumberProperty,
        CheckboxProperty,
        PeopleProperty,
        StatusProperty,
        FilesProperty,
        CreatedTimeProperty,
        LastEditedTimeProperty,
    ],
    Field(discriminator="type"),
]

property_value_adapter: TypeAdapter[PropertyValue] = TypeAdapter(PropertyValue)


class Record(BaseModel):
    """Flat projection of one Notion page."""

    id: str = Field(default=..., description="Notion page identifier")
    created_time: datetime = Field(default=..., description="Page creation timestamp")
    last_edited_time: datetime = Field(default=..., description="Last modification timestamp")
    url: str | None = Field(default=None, description="Canonical page URL")
    archived: bool = Field(default=False, description="Whether the page is archived")
    properties: dict[str, Scalar] = Field(
        default_factory=dict, description="Property name to flattened scalar value"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "59833787-2cf9-4fdf-8782-e53db20768a5",
                "created_time": "2024-01-01T10:00:00Z",
                "last_edited_time": "2024-01-15T14:30:00Z",
                "url": "https://www.notion.so/Task-598337872cf94fdf8782e53db20768a5",
                "archived": False,
                "properties": {"Name": "Write docs", "Done": False, "Tags": "docs, api"},
            }
        }
    }
