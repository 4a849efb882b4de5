"""
QVote Quadratic Voting Ledger

Core imports are lazily loaded so that importing a submodule does not pull
in the whole engine. For direct module access, import from submodules:

    from qvote.governance import VotingEngine, Vote
    from qvote.ledger import ManualClock, InMemoryBalanceLedger
    from qvote.exceptions import NotEnoughBalanceError
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'VotingEngine':
        from .governance import VotingEngine
        return VotingEngine
    elif name == 'Vote':
        from .governance import Vote
        return Vote
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'qvote' has no attribute {name!r}")

__all__ = ['VotingEngine', 'Vote', 'load_config']
