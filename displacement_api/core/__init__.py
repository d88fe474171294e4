"""Core engines, upstream clients and configuration."""
