# fantasy_draft/errors.py


class LedgerError(Exception):
    """Base class for draft ledger failures."""


class NotFoundError(LedgerError, KeyError):
    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"{collection} record not found: {key!r}")

    def __str__(self):
        # KeyError.__str__ would repr() the message
        return self.args[0]


class StorageUnavailableError(LedgerError):
    """The ledger database could not be opened or initialised."""


class DraftSetupError(ValueError):
    """Invalid team setup (too few or too many named teams)."""
