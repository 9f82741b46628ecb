"""OpenPGP packet parsing, message splitting, ASCII armor, UTF-8 checking and text helpers."""

__version__ = "0.1.0"

__all__ = ["armor", "message", "packets", "text", "utf8check"]