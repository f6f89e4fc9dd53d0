"""
Error taxonomy for the peering sidecar.

Errors fall into two families:

- Fatal errors stop the process before the reconciliation loop starts.
  There is no partial startup state to clean up, so the CLI logs them and
  exits with a non-zero status.
- Recoverable errors abort the current reconciliation cycle only.
  The scheduler's retry cadence is the sole recovery mechanism.
"""

from __future__ import annotations


class PeererError(Exception):
    """Base class for every error raised by the sidecar."""


class FatalError(PeererError):
    """Error that terminates the process."""


class RecoverableError(PeererError):
    """Error that fails the current cycle but is retried later."""


class ConfigError(FatalError):
    """Required configuration is missing or invalid."""


class IdentityError(FatalError):
    """
    The identity key file exists but cannot be used.

    Raised when the file cannot be read, is not PEM, is not PKCS#8,
    or does not hold an Ed25519 key. A missing file is not an error:
    the loader waits for it instead.
    """


class ResolutionError(RecoverableError):
    """
    The main node could not be located.

    Covers zero or several matching pods, a pod without an IP, and
    failures talking to the membership directory. Expected while the
    main pod is being rescheduled.
    """


class RemoteError(RecoverableError):
    """The peering service failed or answered with an unexpected status."""
