"""NATS Streaming and JetStream channel resources, status lifecycle, validation and API clients."""

__version__ = "0.1.0"
__all__ = ["channels", "clientset", "conditions", "errors", "lifecycle", "meta", "typed"]