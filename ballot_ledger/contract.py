# ballot_ledger/contract.py
"""
Voting ledger operations.

Each public method is one transition against the world state passed in as
its first argument; the contract itself keeps no state between calls. All
preconditions are checked before any write is staged, and staged writes
only reach the store when the transition completes.

Candidate.Votes is an incremental tally updated when a vote is cast. It is
never recomputed from the Vote records; ``audit_tallies`` reports any drift
between the two without correcting it.

Retrying ``cast_vote`` after a lost response is not safe: if the first call
committed, the retry fails with AlreadyExists for the vote ID.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ballot_ledger.encoding import decode, encode_str
from ballot_ledger.errors import AlreadyExists, DecodeError, NotFound, NotRegistered, UnknownCandidate
from ballot_ledger.models import Candidate, Vote, Voter, decode_record, to_bytes, to_str
from ballot_ledger.security import VoterNamePolicy
from ballot_ledger.storage import WorldState
from ballot_ledger.transition import Transition

logger = logging.getLogger(__name__)

SEED_CANDIDATES = [
    {"ID": "candidate1", "Name": "Alice", "Party": "Partido A"},
    {"ID": "candidate2", "Name": "Bob", "Party": "Partido B"},
]

SEED_VOTERS = [
    {"ID": "voter1", "Name": "John Doe"},
    {"ID": "voter2", "Name": "Jane Smith"},
]

SEED_VOTES = [
    {"ID": "vote1", "VoterID": "voter1", "CandidateID": "candidate1"},
    {"ID": "vote2", "VoterID": "voter2", "CandidateID": "candidate2"},
]


@dataclass
class TallyAudit:
    """Counter vs. recorded votes, per candidate."""

    counted: Dict[str, int] = field(default_factory=dict)
    recorded: Dict[str, int] = field(default_factory=dict)
    # votes whose CandidateID does not name a candidate record
    orphaned_votes: List[str] = field(default_factory=list)

    @property
    def drift(self) -> Dict[str, int]:
        keys = set(self.counted) | set(self.recorded)
        return {
            k: self.counted.get(k, 0) - self.recorded.get(k, 0)
            for k in sorted(keys)
            if self.counted.get(k, 0) != self.recorded.get(k, 0)
        }

    @property
    def consistent(self) -> bool:
        return not self.drift and not self.orphaned_votes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consistent": self.consistent,
            "counted": self.counted,
            "recorded": self.recorded,
            "drift": self.drift,
            "orphaned_votes": self.orphaned_votes,
        }


def _require_id(key: str, what: str = "ID") -> None:
    if not isinstance(key, str) or not key:
        raise ValueError(f"{what} must be a non-empty string")


class VotingContract:
    def __init__(self, name_policy: Optional[VoterNamePolicy] = None, require_registered: bool = True):
        self.name_policy = name_policy or VoterNamePolicy("plain")
        self.require_registered = require_registered

    @classmethod
    def from_settings(cls, settings) -> "VotingContract":
        return cls(
            name_policy=VoterNamePolicy(settings.voter_name_policy),
            require_registered=settings.require_registered,
        )

    # ------------------------------
    # Bootstrap
    # ------------------------------
    def initialize_ledger(self, state: WorldState) -> None:
        """
        Write the seed candidates, voters and votes.

        Existing records under the seed keys are overwritten. Seeded
        candidates start at zero votes; the seeded votes are not counted,
        so ``audit_tallies`` reports them as drift.
        """
        with Transition(state) as tx:
            for c in SEED_CANDIDATES:
                candidate = Candidate(**c, Votes=0)
                tx.put(candidate.id, to_bytes(candidate))
            for v in SEED_VOTERS:
                voter = Voter(ID=v["ID"], Name=self.name_policy.apply(v["Name"]), Registered=True)
                tx.put(voter.id, to_bytes(voter))
            for v in SEED_VOTES:
                vote = Vote(**v)
                tx.put(vote.id, to_bytes(vote))
        logger.info(
            f"Ledger initialized with {len(SEED_CANDIDATES)} candidates, "
            f"{len(SEED_VOTERS)} voters, {len(SEED_VOTES)} votes"
        )

    # ------------------------------
    # Creation
    # ------------------------------
    def create_candidate(self, state: WorldState, id: str, name: str, party: str) -> str:
        _require_id(id)
        with Transition(state) as tx:
            if tx.exists(id):
                logger.warning(f"Candidate {id} rejected: key already in use")
                raise AlreadyExists(id, "candidate")
            candidate = Candidate(ID=id, Name=name, Party=party, Votes=0)
            tx.put(id, to_bytes(candidate))
        logger.info(f"Candidate {id} created")
        return to_str(candidate)

    def register_voter(self, state: WorldState, id: str, name: str) -> str:
        _require_id(id)
        with Transition(state) as tx:
            if tx.exists(id):
                logger.warning(f"Voter {id} rejected: key already in use")
                raise AlreadyExists(id, "voter")
            voter = Voter(ID=id, Name=self.name_policy.apply(name), Registered=True)
            tx.put(id, to_bytes(voter))
        logger.info(f"Voter {id} registered")
        return to_str(voter)

    # ------------------------------
    # Reads
    # ------------------------------
    def read_record(self, state: WorldState, id: str) -> bytes:
        """Raw stored bytes for id. Raises NotFound when absent."""
        value = state.get(id)
        if not value:
            raise NotFound(id)
        return value

    def record_exists(self, state: WorldState, id: str) -> bool:
        return bool(state.get(id))

    def read_voter(self, state: WorldState, id: str) -> Voter:
        return self._read_typed(state, id, Voter, "voter")

    def read_candidate(self, state: WorldState, id: str) -> Candidate:
        return self._read_typed(state, id, Candidate, "candidate")

    def read_vote(self, state: WorldState, id: str) -> Vote:
        return self._read_typed(state, id, Vote, "vote")

    def verify_voter_name(self, state: WorldState, voter_id: str, name: str) -> bool:
        """
        True if name matches the voter's stored name under the name policy.

        Raises:
            NotFound: voter_id is absent or not a voter record
        """
        voter = self.read_voter(state, voter_id)
        return self.name_policy.matches(name, voter.name)

    def _read_typed(self, state, id, model, kind):
        entity = decode_record(id, self.read_record(state, id))
        if not isinstance(entity, model):
            raise NotFound(id, kind)
        return entity

    # ------------------------------
    # Voting
    # ------------------------------
    def cast_vote(self, state: WorldState, id: str, voter_id: str, candidate_id: str) -> str:
        """
        Record a vote and add one to the candidate's tally.

        Checks, in order: the vote ID is free, the voter is a registered
        voter record, the candidate is a candidate record. The vote and the
        updated candidate are committed together or not at all.

        Raises:
            AlreadyExists: id is already in use
            NotRegistered: voter_id is absent, not a voter, or (under the
                strict policy) not marked Registered
            UnknownCandidate: candidate_id is absent or not a candidate
            DecodeError: a prerequisite record is malformed
            StaleStateError: the candidate changed during the transition
        """
        _require_id(id)
        _require_id(voter_id, "voter ID")
        _require_id(candidate_id, "candidate ID")

        with Transition(state) as tx:
            if tx.exists(id):
                logger.warning(f"Vote {id} rejected: key already in use")
                raise AlreadyExists(id, "vote")

            raw_voter = tx.get(voter_id)
            voter = decode_record(voter_id, raw_voter) if raw_voter is not None else None
            if not isinstance(voter, Voter) or (self.require_registered and not voter.registered):
                logger.warning(f"Vote {id} rejected: voter {voter_id} not registered")
                raise NotRegistered(voter_id)

            raw_candidate = tx.get(candidate_id)
            candidate = decode_record(candidate_id, raw_candidate) if raw_candidate is not None else None
            if not isinstance(candidate, Candidate):
                logger.warning(f"Vote {id} rejected: candidate {candidate_id} unknown")
                raise UnknownCandidate(candidate_id)

            vote = Vote(ID=id, VoterID=voter_id, CandidateID=candidate_id)
            updated = candidate.model_copy(update={"votes": candidate.votes + 1})
            tx.put(candidate_id, to_bytes(updated))
            tx.put(id, to_bytes(vote))

        logger.info(f"Vote {id} cast for {candidate_id}, tally now {updated.votes}")
        return to_str(vote)

    def has_voted(self, state: WorldState, voter_id: str) -> bool:
        """True if any vote record references voter_id."""
        for key, raw in state.scan("", ""):
            try:
                entity = decode_record(key, raw)
            except DecodeError:
                continue
            if isinstance(entity, Vote) and entity.voter_id == voter_id:
                return True
        return False

    # ------------------------------
    # Enumeration
    # ------------------------------
    def enumerate_all(self, state: WorldState) -> str:
        """
        Every record in the world state, in key order, as one JSON array.

        A value that is not valid JSON is included as its raw string so one
        malformed entry does not hide the rest.
        """
        return encode_str(self.list_records(state))

    def list_records(self, state: WorldState) -> List[Any]:
        results = []
        for key, raw in state.scan("", ""):
            text = raw.decode("utf-8", errors="replace")
            try:
                record = decode(text)
            except ValueError as e:
                logger.warning(f"Record {key} is not valid JSON, returning raw value: {e}")
                record = text
            results.append(record)
        return results

    def get_results(self, state: WorldState) -> List[Dict[str, Any]]:
        """Candidates ordered by tally, highest first."""
        candidates = [c for c in self._entities(state) if isinstance(c, Candidate)]
        candidates.sort(key=lambda c: (-c.votes, c.id))
        return [
            {"ID": c.id, "Name": c.name, "Party": c.party, "Votes": c.votes}
            for c in candidates
        ]

    def audit_tallies(self, state: WorldState) -> TallyAudit:
        audit = TallyAudit()
        votes = []
        for entity in self._entities(state):
            if isinstance(entity, Candidate):
                audit.counted[entity.id] = entity.votes
                audit.recorded.setdefault(entity.id, 0)
            elif isinstance(entity, Vote):
                votes.append(entity)
        for vote in votes:
            if vote.candidate_id in audit.counted:
                audit.recorded[vote.candidate_id] += 1
            else:
                audit.orphaned_votes.append(vote.id)
        if not audit.consistent:
            logger.warning(f"Tally audit found drift {audit.drift}, orphaned votes {audit.orphaned_votes}")
        return audit

    def _entities(self, state: WorldState):
        for key, raw in state.scan("", ""):
            try:
                yield decode_record(key, raw)
            except DecodeError as e:
                logger.warning(f"Skipping undecodable record: {e.message}")
