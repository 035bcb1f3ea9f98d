"""envctl: declarative developer-environment control."""

__version__ = "0.3.0"
