"""docflow: document intake (image / PDF analysis) and prefactura generation service."""

__version__ = "0.1.0"
