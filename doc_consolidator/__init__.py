"""Document Consolidator - merge PDF, CSV or Word files into one document."""
from .core.version import __version__
