"""Minimall MCP Server - client and page controllers for the Minimal Mall storefront."""

__version__ = "0.1.0"
