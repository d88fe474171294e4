"""AI job displacement nowcasting and attribution service."""

__version__ = "0.1.0"
