"""Package registry adapter."""

from pyrepo.registry.adapter import PublishOutcome, Registry, UvRegistry

__all__ = ["PublishOutcome", "Registry", "UvRegistry"]
