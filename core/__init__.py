"""Core module - storage-neutral models, errors, configuration and logging.

This module contains the canonical data models, the error hierarchy, settings,
structured logging and artifact export shared by every engine component.

Catalog, discount and persistence access belongs in /connectors/.
"""

__version__ = "1.0.0"
