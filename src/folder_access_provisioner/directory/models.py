"""Models for the YAML file that seeds the in-memory directory."""

from pydantic import BaseModel, Field, field_validator


class MockGroup(BaseModel):
    """A security group that already exists in the mock directory."""

    name: str = Field(..., description="sAMAccountName of the group")
    path: str = Field(..., description="DN of the OU holding the group")
    description: str = Field(default="", description="Optional description")


class MockDirectoryConfig(BaseModel):
    """Root of the mock directory YAML."""

    organizational_units: list[str] = Field(default_factory=list)
    groups: list[MockGroup] = Field(default_factory=list)

    @field_validator("organizational_units")
    @classmethod
    def validate_dns(cls, v: list[str]) -> list[str]:
        for dn in v:
            if "=" not in dn:
                raise ValueError(f"organizational unit must be a distinguished name, got: {dn}")
        return v
