# ballot_ledger/models/entity_model.py
"""
Voter, Candidate and Vote records.

All three kinds share one flat key space, so every stored record carries a
``docType`` discriminator. Decoding selects the model from that field only;
a record that merely looks like a voter is not treated as one.
"""
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ballot_ledger.encoding import decode, encode, encode_str
from ballot_ledger.errors import DecodeError

VOTER = "voter"
CANDIDATE = "candidate"
VOTE = "vote"


class _Record(BaseModel):
    # extra fields written by other tools survive a read-modify-write cycle
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., alias="ID", min_length=1)


class Voter(_Record):
    name: str = Field(..., alias="Name")
    registered: bool = Field(True, alias="Registered", strict=True)
    doc_type: Literal["voter"] = Field(VOTER, alias="docType")


class Candidate(_Record):
    name: str = Field(..., alias="Name")
    party: str = Field(..., alias="Party")
    votes: int = Field(0, alias="Votes", ge=0, strict=True)
    doc_type: Literal["candidate"] = Field(CANDIDATE, alias="docType")


class Vote(_Record):
    voter_id: str = Field(..., alias="VoterID")
    candidate_id: str = Field(..., alias="CandidateID")
    doc_type: Literal["vote"] = Field(VOTE, alias="docType")


class UnknownRecord(BaseModel):
    """A stored object with a missing or unrecognised discriminator."""

    key: str
    doc_type: Any = None
    data: Dict[str, Any]


Entity = Union[Voter, Candidate, Vote, UnknownRecord]

_MODELS = {VOTER: Voter, CANDIDATE: Candidate, VOTE: Vote}


def decode_record(key: str, raw: bytes) -> Entity:
    """
    Decode stored bytes into the variant named by the record's docType.

    Raises:
        DecodeError: bytes are not a JSON object, or the object fails the
            validation of the model its docType selects
    """
    try:
        data = decode(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(key, f"invalid JSON ({e})")
    if not isinstance(data, dict):
        raise DecodeError(key, f"expected a JSON object, got {type(data).__name__}")

    doc_type = data.get("docType")
    model = _MODELS.get(doc_type) if isinstance(doc_type, str) else None
    if model is None:
        return UnknownRecord(key=key, doc_type=doc_type, data=data)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodeError(key, f"invalid {doc_type} record ({e.error_count()} errors)")


def _dump(entity: BaseModel) -> Dict[str, Any]:
    if isinstance(entity, UnknownRecord):
        return entity.data
    return entity.model_dump(by_alias=True)


def to_bytes(entity: BaseModel) -> bytes:
    return encode(_dump(entity))


def to_str(entity: BaseModel) -> str:
    return encode_str(_dump(entity))
