# POST IDENTIFIER EXCEPTIONS

class InvalidIdentifierFormat(ValueError):
    """ This exception is raised when a post reference matches none of the supported forms """
    def __init__(self, post_reference):
        self.post_reference = post_reference
        super().__init__(f"Invalid post ID format: {post_reference!r}")

class ResolutionFailed(Exception):
    """ This exception is raised when a handle cannot be resolved to a DID """
    def __init__(self, handle, reason):
        self.handle = handle
        super().__init__(f"Failed to resolve handle {handle!r} to a DID: {reason}")

class FetchFailed(Exception):
    """ This exception is raised when the post resource cannot be fetched for its size probe """
    def __init__(self, url, reason):
        self.url = url
        super().__init__(f"Failed to fetch {url}: {reason}")

# ACCOUNT EXCEPTIONS

class NotFound(Exception):
    """ This exception is raised when no account exists at a derived address """
    def __init__(self, address, account_type="account"):
        self.address = address
        super().__init__(f"{account_type} not found: {address}")

class DuplicateConfig(Exception):
    """ This exception is raised when a campaign config already exists at the derived address """
    def __init__(self, address, seed):
        self.address = address
        self.seed = seed
        super().__init__(f"Campaign config for seed {seed!r} already exists at {address}")

class AccountDecodeError(ValueError):
    """ This exception is raised when account data does not match the expected layout """
    def __init__(self, address, reason):
        self.address = address
        super().__init__(f"Could not decode account {address}: {reason}")

class DerivationExhausted(Exception):
    """ This exception is raised when no bump seed yields an off-curve program address """
    def __init__(self, program_id):
        self.program_id = program_id
        super().__init__(f"Unable to find a viable program address bump seed for program {program_id}")

# SUBMISSION EXCEPTIONS

class SubmissionRejected(Exception):
    """ This exception is raised when the ledger or the program declines an instruction """
    def __init__(self, instruction_name, reason, logs=None):
        self.instruction_name = instruction_name
        self.reason = reason
        self.logs = list(logs or [])
        super().__init__(f"{instruction_name} rejected: {reason}")

class LedgerRpcError(Exception):
    """ This exception is raised when a ledger RPC read fails at the transport or protocol level """
    def __init__(self, method, reason):
        self.method = method
        super().__init__(f"RPC call {method} failed: {reason}")
