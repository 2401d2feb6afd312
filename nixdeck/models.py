"""
Pydantic data models for NixDeck.

Defines capture metadata records and external tool results.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def local_now() -> datetime:
    """Current local time with its UTC offset."""
    return datetime.now().astimezone()


class CaptureMetadata(BaseModel):
    """Common fields of a metadata.json record."""

    # Readers ignore fields written by newer versions
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Capture name (directory key)")
    created: datetime = Field(default_factory=local_now, description="Creation time (ISO-8601, local)")
    description: str = Field("", description="Free-form description (currently always empty)")


class SnapshotMetadata(CaptureMetadata):
    """Snapshot of the critical component subset."""

    files: List[str] = Field(..., description="Components actually captured, in capture order")

    @field_validator('files')
    @classmethod
    def validate_files(cls, v: List[str]) -> List[str]:
        """Reject duplicate component entries."""
        if len(set(v)) != len(v):
            raise ValueError("Duplicate component in files")
        return v

    @property
    def components(self) -> List[str]:
        return self.files


class ContainerMetadata(CaptureMetadata):
    """Container of the broader component set."""

    components: List[str] = Field(..., description="Components actually captured, in capture order")

    @field_validator('components')
    @classmethod
    def validate_components(cls, v: List[str]) -> List[str]:
        """Reject duplicate component entries."""
        if len(set(v)) != len(v):
            raise ValueError("Duplicate component in components")
        return v


class ToolResult(BaseModel):
    """Exit status and captured output of an external tool."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class SystemInfo(BaseModel):
    """Host summary shown by the UI header."""

    hostname: str
    kernel: str
    distro: str
    uptime: str
