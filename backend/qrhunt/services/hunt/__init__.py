"""Hunt domain services: tokens, progression, ranking and broadcast.

This package contains the game mechanics that HTTP routes and socket
handlers call into. Nothing here touches Flask request objects or sockets
directly; storage and delivery are injected.
"""

from .engine import LEVEL_COUNT, ProgressionEngine
from .tokens import TokenCodec

__all__ = ['LEVEL_COUNT', 'ProgressionEngine', 'TokenCodec']
