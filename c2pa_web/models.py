"""Request and response models for the HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class Assertion(BaseModel):
    """A single labeled claim; its data is arbitrary JSON defined by the C2PA standard."""

    label: str = Field(min_length=1)
    data: JsonValue = None


class ManifestData(BaseModel):
    """Manifest description built by the sign form."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: Optional[str] = None
    creator: Optional[str] = None
    copyright: Optional[str] = None
    description: Optional[str] = None
    claim_generator: Optional[str] = Field(default=None, alias="claimGenerator")
    format: Optional[str] = None
    assertions: List[Assertion] = Field(default_factory=list)


class FileRequest(BaseModel):
    """Read/verify request payload."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId")


class SignRequest(BaseModel):
    """Sign request payload."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId")
    manifest_data: Optional[ManifestData] = Field(default=None, alias="manifestData")
    use_local_signer: Optional[bool] = Field(default=None, alias="useLocalSigner")
    certificate: Optional[str] = None  # PEM certificate chain
    private_key: Optional[str] = Field(default=None, alias="privateKey")  # PEM private key


class UploadResponse(BaseModel):
    """Upload result."""

    success: bool = True
    fileId: str
    fileName: str
    fileType: str
    fileSize: int
    url: str


class ReadResponse(BaseModel):
    """Manifest read result."""

    success: bool = True
    hasC2pa: bool
    manifest: Optional[Dict[str, Any]] = None
    summary: Optional[Dict[str, Any]] = None
    readError: Optional[str] = None


class SignResponse(BaseModel):
    """Signing result."""

    success: bool = True
    fileId: str
    downloadUrl: str
    url: str
    signer: str


class StatusResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    c2paAvailable: bool
    c2paVersion: Optional[str] = None
    supportedTypes: List[str]
    maxUploadSize: int


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    success: bool = False
    error: str
