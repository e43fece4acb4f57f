"""History Talks - chat with AI personas of historical figures."""

__version__ = "0.1.0"
