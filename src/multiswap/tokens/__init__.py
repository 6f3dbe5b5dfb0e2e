"""Token references and catalog."""

from multiswap.tokens.base import TokenRef

__all__ = ["TokenRef"]
