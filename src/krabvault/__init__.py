"""krabvault: a local, per-user encrypted password vault."""

__version__ = "0.1.0"
