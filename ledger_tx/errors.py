"""Error types raised while compiling, encoding and signing transactions"""


class TransactionError(Exception):
    """Base class for all ledger_tx errors"""


class ValidationError(TransactionError):
    """Input rejected before any bytes are produced"""


class FormatError(TransactionError):
    """Wire data is corrupt or uses an unsupported layout"""


class StateError(TransactionError):
    """Operation not allowed in the current message/transaction state"""


class MissingPayer(ValidationError):
    """No fee payer supplied"""


class TooManyAccounts(ValidationError):
    """Account table does not fit in single-byte indices"""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"{count} accounts exceeds the limit of {limit}")


class UnknownSigner(ValidationError):
    """Signer key is not among the message's required signers"""

    def __init__(self, public_key):
        self.public_key = public_key
        super().__init__(f"{public_key} is not a required signer of this message")


class LookupIndexOutOfRange(ValidationError):
    """Lookup index points past the end of the supplied table"""

    def __init__(self, table, index: int, size: int):
        self.table = table
        self.index = index
        self.size = size
        super().__init__(f"index {index} out of range for lookup table {table} with {size} keys")


class MissingLookupTable(ValidationError):
    """A referenced lookup table was not supplied"""

    def __init__(self, table):
        self.table = table
        super().__init__(f"no contents supplied for lookup table {table}")


class SlotAlreadySet(ValidationError):
    """Account slot assigned twice"""


class SlotUnset(ValidationError):
    """Account slot left empty"""


class UnknownProgram(ValidationError):
    """No decoder registered for a program id"""


class MalformedMessage(FormatError):
    """Short, trailing or otherwise unparseable wire data"""


class InvalidVersion(FormatError):
    """Message version out of range or unsupported"""


class AlreadyResolved(StateError):
    """Address table lookups were already resolved"""


class UnresolvedLookup(StateError):
    """Account query on a message whose lookups are not yet resolved"""


class NotFullySigned(StateError):
    """Serialization attempted with empty signature slots"""

    def __init__(self, missing):
        self.missing = list(missing)
        keys = ', '.join(str(key) for key in self.missing)
        super().__init__(f"missing signatures for: {keys}")


class MessageChanged(StateError):
    """Message bytes differ from the bytes already signed"""


class TransactionFinalized(StateError):
    """Transaction was already serialized"""
