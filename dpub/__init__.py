"""dpub: peer-review and moderation backend for a decentralized journal."""

__version__ = "0.1.0"
