"""chartmirror: mirror a remote chart repository to local storage."""

__version__ = "0.1.0"
