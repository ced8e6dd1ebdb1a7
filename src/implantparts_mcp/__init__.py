"""Implant Parts MCP Server - Faceted search over dental-implant prosthetic parts."""

__version__ = "0.3.0"
