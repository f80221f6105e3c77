"""
Error Taxonomy
==============
Exceptions raised by the facade generator, the preset table and the
high-resolution export pipeline.

Configuration errors are programmer errors and are never recovered.
Export errors are environmental; the interactive view stays usable after them.
"""


class FacadeStudioError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(FacadeStudioError, ValueError):
    """Invalid facade configuration, export request or preset identifier."""


class ExportError(FacadeStudioError, RuntimeError):
    """A high-resolution export could not be completed."""


class ResourceExhaustionError(ExportError):
    """The requested resolution cannot be allocated or rendered by the device."""


class ConcurrencyViolationError(ExportError):
    """An export was requested while another one still holds the render surface."""
