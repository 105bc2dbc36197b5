"""Shared configuration, YAML loading, and timeout helpers."""
