"""
Proofdesk - Proofreading and translation assistant backed by a local LLM

Paste text -> pick tone, rewrite strength and target language -> corrected
Markdown plus an explanation of every change.
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("proofdesk")
except PackageNotFoundError:
    __version__ = "0.0.0"  # Not installed

from .cli import cli_main

__all__ = ["cli_main", "__version__"]
