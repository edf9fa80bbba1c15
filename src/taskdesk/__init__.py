# src/taskdesk/__init__.py

"""taskdesk: a single-user project task tracker with LLM-assisted entry."""

__version__ = "0.1.0"
