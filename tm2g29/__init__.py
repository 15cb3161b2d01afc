"""Translate Thrustmaster racing wheel reports and force feedback to and from the G29 protocol."""

__version__ = "0.1.0"