"""Walking route classification and segment composition service."""

__version__ = "0.1.0"
