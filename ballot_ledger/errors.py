# ballot_ledger/errors.py
# Typed failures raised by ledger operations. Every error names the key that
# violated the precondition so the host can report it.


class LedgerError(Exception):
    """Base class for rejected transitions."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key
        self.message = message


class AlreadyExists(LedgerError):
    def __init__(self, key: str, kind: str = "record"):
        super().__init__(key, f"The {kind} {key} already exists")


class NotFound(LedgerError):
    def __init__(self, key: str, kind: str = "record"):
        super().__init__(key, f"The {kind} {key} does not exist")


class NotRegistered(LedgerError):
    def __init__(self, key: str):
        super().__init__(key, f"The voter {key} is not registered")


class UnknownCandidate(LedgerError):
    def __init__(self, key: str):
        super().__init__(key, f"The candidate {key} does not exist")


class DecodeError(LedgerError):
    def __init__(self, key: str, reason: str):
        super().__init__(key, f"The record {key} could not be decoded: {reason}")
        self.reason = reason


class StaleStateError(LedgerError):
    """A checked write found a value other than the one the transition read."""

    def __init__(self, key: str):
        super().__init__(key, f"The record {key} was modified by a concurrent transition")
