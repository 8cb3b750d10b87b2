"""
Exceptions for the krabvault engine
Everything derives from KrabVaultError so the interaction layer has a single catch point
"""


class KrabVaultError(Exception):
    # general container for errors
    pass


class ValidationError(KrabVaultError):
    # raised on empty or malformed user input (re-prompt)
    pass


class NotFoundError(KrabVaultError):
    # raised when a username or an entry id does not exist
    pass


class AlreadyExistsError(KrabVaultError):
    # raised when registering a username that already has a vault
    pass


class AuthOrIntegrityError(KrabVaultError):
    # wrong password, tampered file and unreadable file all end up here
    pass


class UnsupportedFormatError(AuthOrIntegrityError):
    # valid magic, but a version / algorithm id this build does not know
    pass


class PersistenceError(KrabVaultError):
    # raised when the vault file cannot be written or replaced; the old file is intact
    pass


class ResourceError(KrabVaultError):
    # raised when key derivation runs out of memory
    pass


class SessionError(KrabVaultError):
    # raised on session lifecycle misuse (double login for one user)
    pass


class SessionLockedError(SessionError):
    # raised when a closed session is asked for its key
    pass
