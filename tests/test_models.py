"""Tests for discriminator-based record decoding."""

import pytest

from ballot_ledger.errors import DecodeError
from ballot_ledger.models import Candidate, UnknownRecord, Vote, Voter, decode_record, to_str


def test_decode_selects_by_discriminator() -> None:
    assert isinstance(decode_record("v", b'{"ID":"v","Name":"n","Registered":true,"docType":"voter"}'), Voter)
    assert isinstance(
        decode_record("c", b'{"ID":"c","Name":"n","Party":"p","Votes":0,"docType":"candidate"}'), Candidate
    )
    assert isinstance(decode_record("x", b'{"ID":"x","VoterID":"v","CandidateID":"c","docType":"vote"}'), Vote)


def test_voter_shaped_record_without_tag_is_unknown() -> None:
    entity = decode_record("v", b'{"ID":"v","Name":"n","Registered":true}')

    assert isinstance(entity, UnknownRecord)
    assert entity.doc_type is None
    assert entity.data["Name"] == "n"


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        b"[1,2]",
        b'{"ID":"c","Name":"n","Party":"p","Votes":"3","docType":"candidate"}',
        b'{"ID":"c","Name":"n","Party":"p","Votes":true,"docType":"candidate"}',
        b'{"ID":"v","Name":"n","Registered":"yes","docType":"voter"}',
        b'{"ID":"x","VoterID":"v","docType":"vote"}',
        b"NaN",
        b'{"ID":"c","Name":"n","Party":"p","Votes":1e400,"docType":"candidate"}',
    ],
)
def test_malformed_records_raise(raw) -> None:
    with pytest.raises(DecodeError):
        decode_record("k", raw)


def test_dump_uses_wire_names() -> None:
    vote = Vote(ID="vote1", VoterID="voter1", CandidateID="candidate1")

    assert to_str(vote) == '{"CandidateID":"candidate1","ID":"vote1","VoterID":"voter1","docType":"vote"}'
