"""
QVote Exceptions

Custom exception classes for the quadratic voting ledger.
"""


class QVoteException(Exception):
    """Base exception for QVote."""
    pass


class ConfigurationError(QVoteException):
    """Configuration error."""
    pass


# ── Host collaborators ───────────────────────────────────────────────

class BalanceLedgerError(QVoteException):
    """Balance ledger primitive failed."""
    pass


class BalanceUnderflowError(BalanceLedgerError):
    """Debit larger than the account balance."""
    pass


class BalanceOverflowError(BalanceLedgerError):
    """Credit would exceed the maximum representable balance."""
    pass


class ClockError(QVoteException):
    """Clock moved backwards or was given a bad height."""
    pass


# ── Ledger operations ────────────────────────────────────────────────

class LedgerError(QVoteException):
    """Base class for every failed ledger operation."""
    pass


class UnauthorizedOperatorError(LedgerError):
    """Caller is not the configured operator."""
    pass


class NotRegisteredVoterError(LedgerError):
    """Caller id absent from the voter registry."""
    pass


class AlreadyRegisteredError(LedgerError):
    """Duplicate registration attempt."""
    pass


class InsufficientFeeError(LedgerError):
    """A required fee is zero or negative."""
    pass


class FeeExceedsInitialBalanceError(LedgerError):
    """Registration fee larger than the initial allocation."""
    pass


class InvalidAmountError(LedgerError):
    """Token amount is not a positive integer."""
    pass


class InvalidProposalError(LedgerError):
    """Proposal data is malformed."""
    pass


class ProposalNotFoundError(LedgerError):
    """Referenced proposal id does not exist."""
    pass


class ProposalAlreadyStartedError(LedgerError):
    """Start called on a proposal that is not in CREATED state."""
    pass


class ProposalNotActiveError(LedgerError):
    """Vote attempted against a proposal that was never started."""
    pass


class ProposalClosedError(LedgerError):
    """Vote attempted against a proposal whose window has elapsed."""
    pass


class NotEnoughBalanceError(LedgerError):
    """Debit exceeds current balance."""
    pass


class NotEnoughReservedTokensError(LedgerError):
    """Unreserve or vote amount exceeds the reserved pool."""
    pass


class NoClosedProposalsError(LedgerError):
    """Tally requested with no eligible proposals."""
    pass


class InvalidVoteError(LedgerError):
    """Vote direction is not AYE, NAY or ABSTAIN, or a batch entry is malformed."""
    pass


class AlreadyVotedError(LedgerError):
    """Voter already cast a vote on this proposal."""
    pass
