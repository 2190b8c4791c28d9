from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, datetime
from enum import StrEnum
from typing import ClassVar, Literal


class RetrievalMode(StrEnum):
    SEMANTIC = "semantic"
    LEXICAL = "lexical"


type MessageType = Literal["channel", "dm", "summary"]


def parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


class _MetadataBase:
    """Shared behavior of the metadata variants. Naive timestamps are taken as UTC."""

    def __post_init__(self):
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self), "created_at": self.created_at.isoformat()}


@dataclass(frozen=True)
class ChannelMetadata(_MetadataBase):
    type: ClassVar[Literal["channel"]] = "channel"

    message_id: str
    user_id: str
    user_name: str | None
    created_at: datetime
    channel_id: str


@dataclass(frozen=True)
class DirectMetadata(_MetadataBase):
    """DM payload. Participant ids are filled in by the permission filter."""

    type: ClassVar[Literal["dm"]] = "dm"

    message_id: str
    user_id: str
    user_name: str | None
    created_at: datetime
    sender_id: str | None = None
    receiver_id: str | None = None
    other_user_id: str | None = None


@dataclass(frozen=True)
class SummaryMetadata(_MetadataBase):
    type: ClassVar[Literal["summary"]] = "summary"

    message_id: str
    user_id: str
    user_name: str | None
    created_at: datetime
    channel_id: str | None = None


type MessageMetadata = ChannelMetadata | DirectMetadata | SummaryMetadata

_METADATA_TYPES: dict[str, type[ChannelMetadata | DirectMetadata | SummaryMetadata]] = {
    "channel": ChannelMetadata,
    "dm": DirectMetadata,
    "summary": SummaryMetadata,
}


def metadata_from_dict(data: dict) -> MessageMetadata:
    kind = data.get("type")
    cls = _METADATA_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown message type: {kind!r}")
    names = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in data.items() if k in names}
    return cls(**kwargs)


@dataclass
class SearchResult:
    """One retrieved candidate message. `score` is rewritten at each ranking stage."""

    content: str
    metadata: MessageMetadata
    score: float | None = None

    @property
    def message_id(self) -> str:
        return self.metadata.message_id

    @property
    def is_dm(self) -> bool:
        return self.metadata.type == "dm"


@dataclass(frozen=True)
class QueryIntent:
    is_quantity_question: bool = False
    is_hiring_question: bool = False
    is_current_question: bool = False


@dataclass(frozen=True)
class ContentScore:
    score: float = 0.0
    match_count: int = 0
    has_number: bool = False


@dataclass
class FusionEntry:
    doc: SearchResult
    sum_score: float
    match_count: int
    has_number: bool
    is_recent: bool


@dataclass(frozen=True)
class ExpansionCacheEntry:
    timestamp: float
    expansion: str


@dataclass(frozen=True)
class DirectMessageRecord:
    id: str
    sender_id: str
    receiver_id: str


@dataclass
class EvidenceItem:
    content: str
    message_id: str
    timestamp: str
    type: MessageType
    channel_id: str | None = None
    user_name: str | None = None
    sender_id: str | None = None
    receiver_id: str | None = None
    other_user_id: str | None = None


@dataclass
class SearchResponse:
    answer: str
    evidence: list[EvidenceItem] = field(default_factory=list)
    additional_context: str | None = None
