"""Ingestion layer.

This package turns the command-line JSON record into a typed
:class:`telemerge.models.DeviceRecord` and renders results back to JSON.
"""

__all__: list[str] = []
