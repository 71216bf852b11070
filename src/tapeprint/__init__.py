"""tapeprint - print labels on network tape printers."""

__version__ = "0.1.0"
