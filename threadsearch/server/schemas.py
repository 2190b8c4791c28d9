from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from threadsearch.search.types import SearchResponse


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class EvidenceSchema(CamelModel):
    content: str
    message_id: str
    timestamp: str
    type: Literal["channel", "dm", "summary"]
    channel_id: str | None = None
    user_name: str | None = None
    sender_id: str | None = None
    receiver_id: str | None = None
    other_user_id: str | None = None


class SearchResponseSchema(CamelModel):
    answer: str
    evidence: list[EvidenceSchema]
    additional_context: str | None = None

    @classmethod
    def from_response(cls, response: SearchResponse) -> "SearchResponseSchema":
        return cls.model_validate(response)
