"""
QVote Ledger Constants

Ledger parameters, vote codes and the logging settings read from ``.env``.
"""
from dotenv import dotenv_values


# ==================================================================================
# LEDGER PARAMETERS
# ==================================================================================
# Changing these on a live ledger changes the meaning of balances already issued.
INITIAL_BALANCE = 100  # Tokens allocated to every voter at registration (before the fee)
VOTING_PERIOD = 100  # Blocks a started proposal accepts votes
DEFAULT_OPERATOR = 'root'

# Balances are unsigned 128-bit quantities; anything above fails as an overflow
BALANCE_MAX = 2 ** 128 - 1

# Unreserving burns everything that is not credited back
UNRESERVE_REFUND_DIVISOR = 2

# Proposal text is identified by a blake2b digest, never stored
CONTENT_HASH_SIZE = 32
FIRST_PROPOSAL_INDEX = 1


# ==================================================================================
# VOTE DIRECTIONS
# ==================================================================================
VOTE_AYE = 0
VOTE_NAY = 1
VOTE_ABSTAIN = 2


# ==================================================================================
# LOGGING SETTINGS (.env)
# ==================================================================================
class ConfigString(str):
    """String setting that remembers its default."""
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default


class ConfigBool(int):
    """Boolean setting that remembers its default."""
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))


_env = dotenv_values(".env")


def _as_bool(raw: str):
    folded = raw.strip().casefold()
    if folded in ("true", "false"):
        return folded == "true"
    return None


def _setting(key: str, default: str):
    raw = _env.get(key)
    value = default if raw is None else raw
    flag = _as_bool(value)
    if flag is not None and _as_bool(default) is not None:
        return ConfigBool(flag, _as_bool(default))
    return ConfigString(value, default)


LOG_LEVEL = _setting('LOG_LEVEL', 'INFO')
LOG_FORMAT = _setting('LOG_FORMAT', '%(asctime)s - %(levelname)s - %(name)s - %(message)s')
LOG_DATE_FORMAT = _setting('LOG_DATE_FORMAT', '%Y-%m-%dT%H:%M:%S')
LOG_CONSOLE_HIGHLIGHTING = _setting('LOG_CONSOLE_HIGHLIGHTING', 'True')
LOG_FILE_OUTPUT = _setting('LOG_FILE_OUTPUT', 'False')

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5
