# ballot_ledger/security.py
# Voter-name storage policy. "hashed" keeps a deterministic, non-reversible
# identifier instead of the plaintext name so every peer stores the same bytes.
from passlib.context import CryptContext

# hex_sha256 is unsalted: the same name always yields the same digest
name_context = CryptContext(schemes=["hex_sha256"])


class VoterNamePolicy:
    def __init__(self, mode: str = "plain"):
        if mode not in ("plain", "hashed"):
            raise ValueError(f"Unknown voter name policy: {mode!r}")
        self.mode = mode

    def apply(self, name: str) -> str:
        if self.mode == "plain":
            return name
        return hash_name(name)

    def matches(self, name: str, stored_name: str) -> bool:
        """Check a claimed name against the value stored under this policy."""
        if self.mode == "plain":
            return name == stored_name
        return verify_name(name, stored_name)


# Hash a voter name
def hash_name(name: str) -> str:
    return name_context.hash(name)


# Check a plain name against a stored digest
def verify_name(plain_name: str, stored_name: str) -> bool:
    try:
        return name_context.verify(plain_name, stored_name)
    except ValueError:
        # stored value is not a digest (written under the plain policy)
        return False
