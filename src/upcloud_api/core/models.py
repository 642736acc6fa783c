"""
UpCloud API - Data Models

This module contains the Pydantic configuration model and the small value types
used to shape requests.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ValidationError


class UpCloudConfig(BaseModel):
    """Configuration for an UpCloud API connection."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., min_length=1, description="API account username")
    password: str = Field(..., description="API account password", repr=False)  # Hide in logs
    api_url: str = Field(default="https://api.upcloud.com", description="API root URL")
    api_version: str = Field(default="1.2", description="API version path segment")
    timeout: float = Field(default=30.0, gt=0, description="Transport timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Whether to verify SSL certificates")
    poll_interval: float = Field(
        default=5.0, gt=0, description="Delay between state polls in seconds"
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v):
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v):
        return v.strip("/")

    @property
    def base_url(self) -> str:
        return f"{self.api_url}/{self.api_version}"


class IPAddressKind(str, Enum):
    """IP addresses a new server can be given."""

    PUBLIC = "public"
    PRIVATE = "private"
    IPV6 = "ipv6"

    def as_request(self) -> dict[str, str]:
        if self is IPAddressKind.PUBLIC:
            return {"access": "public", "family": "IPv4"}
        if self is IPAddressKind.PRIVATE:
            return {"access": "private", "family": "IPv4"}
        return {"access": "public", "family": "IPv6"}


class StopType(str, Enum):
    SOFT = "soft"
    HARD = "hard"


def _check_tag_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Tag name must be a non-empty string", context={"tag": name})
    if "," in name or "/" in name:
        raise ValidationError(
            f"Tag name may not contain ',' or '/': {name}", context={"tag": name}
        )
    return name


@dataclass(frozen=True)
class SingleTag:
    """Exactly one tag."""

    name: str

    def __post_init__(self):
        _check_tag_name(self.name)

    @property
    def path_segment(self) -> str:
        return self.name


@dataclass(frozen=True)
class MultipleTags:
    """One or more tags applied in a single call."""

    names: tuple[str, ...]

    def __post_init__(self):
        if not self.names:
            raise ValidationError("At least one tag is required")
        for name in self.names:
            _check_tag_name(name)

    @property
    def path_segment(self) -> str:
        return ",".join(self.names)


TagSelector = Union[SingleTag, MultipleTags]


def tag_selector(tags: Union[str, Iterable[str], SingleTag, MultipleTags]) -> TagSelector:
    """Normalize a tag name or a collection of tag names into a TagSelector.

    Args:
        tags: A single tag name, an iterable of names, or an existing selector

    Returns:
        SingleTag for a plain string, MultipleTags for a collection

    Raises:
        ValidationError: If no usable tag name is given
    """
    if isinstance(tags, (SingleTag, MultipleTags)):
        return tags
    if isinstance(tags, str):
        return SingleTag(tags)
    return MultipleTags(tuple(tags))
