"""docsync - document source connectors for SharePoint Online and ADLS Gen2."""

__version__ = "1.0.0"
