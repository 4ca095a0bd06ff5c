"""
Request schemas

Each model describes the accepted input of one operation. Field names are
snake_case in Python and camelCase on the wire and in MongoDB documents.
"""

import json
import re
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .responses import BadRequest

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^\d{10}$")
ACTIVE_FLAGS = {"true": True, "false": False}


def parse_active_flag(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip() in ACTIVE_FLAGS:
        return ACTIVE_FLAGS[value.strip()]
    raise ValueError("isActive must be true or false")


ActiveFlag = Annotated[bool, BeforeValidator(parse_active_flag)]

SchemaT = TypeVar("SchemaT", bound="RequestSchema")


class RequestSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def fields(self) -> Dict[str, Any]:
        """Field values keyed by wire name, leaving out anything absent."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TaxonomyCreate(RequestSchema):
    name: str = Field(min_length=1)
    is_active: ActiveFlag = True


class TaxonomyUpdate(RequestSchema):
    name: Optional[str] = None
    is_active: Optional[ActiveFlag] = None


class ProductCreate(RequestSchema):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    material: str = Field(min_length=1)
    size: Optional[str] = None
    quantity_per_pack: Optional[int] = Field(None, ge=1)
    price_per_pack: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: ActiveFlag = True


class ProductUpdate(RequestSchema):
    name: Optional[str] = None
    category: Optional[str] = None
    material: Optional[str] = None
    size: Optional[str] = None
    quantity_per_pack: Optional[int] = Field(None, ge=1)
    price_per_pack: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[ActiveFlag] = None
    existing_images: Optional[List[str]] = None

    @field_validator("existing_images", mode="before")
    @classmethod
    def single_image_as_list(cls, value):
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            # A blank entry means "keep none of the current images".
            return [item for item in value if isinstance(item, str) and item.strip()]
        return value


class ContentBlock(BaseModel):
    title: str = ""
    description: str = ""
    icon: str = ""

    @field_validator("title", "description", "icon", mode="before")
    @classmethod
    def text_or_empty(cls, value):
        return value if isinstance(value, str) else ""


def parse_content_blocks(value) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except ValueError:
            raise ValueError("Invalid content format. Must be JSON.")
    if not isinstance(value, list):
        return []
    return [block if isinstance(block, dict) else {} for block in value]


class BlogCreate(RequestSchema):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    content: List[ContentBlock] = Field(default_factory=list)
    is_active: ActiveFlag = True

    @field_validator("content", mode="before")
    @classmethod
    def parse_content(cls, value):
        return parse_content_blocks(value)


class BlogUpdate(RequestSchema):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[List[ContentBlock]] = None
    is_active: Optional[ActiveFlag] = None

    @field_validator("content", mode="before")
    @classmethod
    def parse_content(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return parse_content_blocks(value)


def normalize_email(value) -> str:
    return str(value or "").strip().lower()


class AdminRegister(RequestSchema):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    avatar: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class AdminLogin(RequestSchema):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class ProfileUpdate(RequestSchema):
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    old_password: Optional[str] = None
    new_password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value) if value else value


class ForgotPassword(RequestSchema):
    email: str = Field(min_length=1)
    new_password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return normalize_email(value)


class ContactCreate(RequestSchema):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        if value and not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value):
        if value and not PHONE_PATTERN.match(value):
            raise ValueError("Phone number must be 10 digits")
        return value


def describe_error(error: Mapping[str, Any]) -> str:
    location = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
    field_name = location[0] if location else "input"

    if error.get("type") in ("missing", "string_too_short") or error.get("input") is None:
        return f"{field_name} is required"
    if error.get("type") == "value_error":
        return str(error["ctx"]["error"])
    return f"Invalid value for {field_name}: {error.get('msg', '').lower()}"


def validate(schema: Type[SchemaT], payload: Mapping[str, Any]) -> SchemaT:
    try:
        return schema.model_validate(dict(payload))
    except ValidationError as exc:
        raise BadRequest(describe_error(exc.errors()[0]))
