"""
Models for credentials threaded between services.
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class CredentialSource(str, Enum):
    """Where a credential value came from."""
    SUPPLIED = "supplied"
    GENERATED = "generated"


class Credential(BaseModel):
    """
    A named secret value.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    value: str = Field(repr=False)
    source: CredentialSource = CredentialSource.SUPPLIED
