"""An interactive command shell with pipes, logical operators, redirections, here-documents and wildcards."""

__version__ = "0.1.0"