"""Reference renderer that turns timeline snapshots into preview images."""

from .preview import PreviewConfig, TimelinePreviewRenderer

__all__ = [
    "PreviewConfig",
    "TimelinePreviewRenderer",
]
