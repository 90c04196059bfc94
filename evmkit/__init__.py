"""EVM instructions, gas tables and a resumable host-interrupt mechanism."""

__version__ = "0.1.0"