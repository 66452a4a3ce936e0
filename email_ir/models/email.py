"""
Email IR Email Data Models

Pydantic models for the notified email record returned by the
source-data provider, including pre-computed scan verdicts.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, ClassVar, Dict, List, Optional
from enum import Enum


class ScanResult(str, Enum):
    """Verdict returned by one scanning engine."""
    CLEAN = "Clean"
    MALICIOUS = "Malicious"
    PHISHING = "Phishing"
    ERROR = "Error"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class HeaderEntry(BaseModel):
    """Single raw header line."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Header name as received")
    value: str = Field("", description="Header value")


class ScanVerdict(BaseModel):
    """One engine's verdict for a scanned item."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    engine: str = Field("unknown", alias="analysisEngineType", description="Engine that produced the verdict")
    result: ScanResult = Field(..., description="Clean / Malicious / Phishing / Error")


class ScannedItem(BaseModel):
    """Common shape for scanned URLs, IPs and attachments."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    analysis_list: List[ScanVerdict] = Field(default_factory=list, alias="analysisList")
    result: Optional[str] = Field(None, description="Flat verdict when the provider sends one")

    # Field that identifies the item; set by each subclass
    value_field: ClassVar[Optional[str]] = None

    @property
    def value(self) -> str:
        return getattr(self, self.value_field) if self.value_field else ""

    @property
    def verdicts(self) -> List[str]:
        """All verdict strings recorded for this item, lower-cased."""
        found = [v.result.value.lower() for v in self.analysis_list]
        if self.result:
            found.append(self.result.strip().lower())
        return found

    @property
    def is_malicious(self) -> bool:
        return any(v in ("malicious", "phishing") for v in self.verdicts)


class ScannedURL(ScannedItem):
    url: str = Field("", description="Scanned URL")

    value_field: ClassVar[str] = "url"


class ScannedIP(ScannedItem):
    ip: str = Field("", description="Scanned IP address")

    value_field: ClassVar[str] = "ip"


class ScannedAttachment(ScannedItem):
    name: str = Field("", description="Attachment filename")
    content_type: Optional[str] = Field(None, alias="contentType", description="MIME type")

    value_field: ClassVar[str] = "name"


class EmailRecord(BaseModel):
    """
    Notified email as returned by the source-data provider.

    Wire names (``from``, ``htmlBody``, ...) are accepted as aliases and
    emitted again by ``model_dump(by_alias=True)``.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    from_address: str = Field("", alias="from", description="Sender address")
    sender_name: Optional[str] = Field(None, alias="senderName", description="Display name")
    subject: str = Field("", description="Subject line")
    html_body: str = Field("", alias="htmlBody", description="Raw HTML body")
    sender_ip: Optional[str] = Field(None, alias="senderIp", description="Connecting IP")
    geo_location: Optional[str] = Field(None, alias="geoLocation", description="IP geolocation")
    headers: List[HeaderEntry] = Field(default_factory=list, description="Ordered header lines")
    urls: List[ScannedURL] = Field(default_factory=list)
    ips: List[ScannedIP] = Field(default_factory=list)
    attachments: List[ScannedAttachment] = Field(default_factory=list)
    to: List[str] = Field(default_factory=list, description="Recipients")
    result: Optional[str] = Field(None, description="Provider-level marker, e.g. Simulation")

    @field_validator("from_address", "subject", "html_body", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("to", mode="before")
    @classmethod
    def normalize_recipients(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [item.get("email", "") if isinstance(item, dict) else str(item) for item in value]

    @property
    def sender_domain(self) -> str:
        if "@" in self.from_address:
            return self.from_address.rsplit("@", 1)[1].lower()
        return ""

    def header(self, name: str) -> Optional[str]:
        """First value for a header, matched case-insensitively."""
        wanted = name.lower()
        for entry in self.headers:
            if entry.key.lower() == wanted:
                return entry.value
        return None

    def has_header(self, name: str) -> bool:
        wanted = name.lower()
        return any(entry.key.lower() == wanted for entry in self.headers)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using the provider's field names."""
        return self.model_dump(by_alias=True, mode="json")
