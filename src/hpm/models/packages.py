from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class PackageDescriptor(BaseModel):
    """A package advertised by the remote registry."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("package name must not be empty")
        return v


class InstalledPackage(BaseModel):
    """A package present in the local store."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
