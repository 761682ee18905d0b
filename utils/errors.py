"""
faast error taxonomy.

Only ConfigError is fatal. PayloadError and TransportError are attached to the
CurlResult of the permutation that caused them and the run carries on.
"""


class FaastError(Exception):
    """Base class for every error raised by faast"""


class ConfigError(FaastError):
    """Bad config file, wordlist, cookie string or field count"""


class PayloadError(FaastError):
    """Fields and supplied values do not line up for one permutation"""


class TransportError(FaastError):
    """Request construction, rate limiter or network failure"""


class RateLimitCancelled(TransportError):
    """The rate limiter wait was cancelled or would exceed its deadline"""


class ValidationWarning(UserWarning):
    """Unknown validation mode, every response passes"""
