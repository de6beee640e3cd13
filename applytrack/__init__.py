"""Job application tracking from mailbox messages."""

__version__ = "0.1.0"
