"""A small XML parser with SAX and DOM interfaces, a configurable writer and text helpers."""

__version__ = "4.1.0"