"""tracscope - read-only swap analytics for the Intercom sidechannel."""

__version__ = "1.0.0"
