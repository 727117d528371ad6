"""Shared building blocks: wire protocol, chunk codec, configuration, logging."""
