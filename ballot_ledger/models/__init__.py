from ballot_ledger.models.entity_model import (
    CANDIDATE,
    VOTE,
    VOTER,
    Candidate,
    Entity,
    UnknownRecord,
    Vote,
    Voter,
    decode_record,
    to_bytes,
    to_str,
)

__all__ = [
    "CANDIDATE",
    "VOTE",
    "VOTER",
    "Candidate",
    "Entity",
    "UnknownRecord",
    "Vote",
    "Voter",
    "decode_record",
    "to_bytes",
    "to_str",
]
