"""
Language Server Protocol (LSP) implementation.

Provides client and server-process components for language navigation features
like go-to-definition, find references, hover information and document symbols.
"""

from src.lsp.client import LSPClient, LSPRequestError, create_lsp_client
from src.lsp.server import LSPServer

__all__ = [
    'LSPClient',
    'LSPRequestError',
    'LSPServer',
    'create_lsp_client',
]
