"""Sample A2A agents and the configuration needed to serve them."""

from .helloworld import HelloWorldAgent

__all__ = ["HelloWorldAgent"]
