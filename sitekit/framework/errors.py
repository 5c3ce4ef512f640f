from __future__ import annotations


class AssetError(RuntimeError):
    """Raised when an asset cannot be resolved, built, transformed or saved."""


class AssetNotFoundError(AssetError):
    """Raised when a source path matches no remote, local or theme file."""


class EmptyRemoteContentError(AssetError):
    """Raised when a fetched remote asset has no usable content."""


class BundleError(AssetError):
    """Raised when bundle members are empty, heterogeneous or unsupported."""


class CompileError(AssetError):
    """Raised when SCSS compilation is misconfigured or fails."""


class MinifyError(AssetError):
    """Raised when minification is requested for an unsupported file kind."""


class ImageError(AssetError):
    """Raised when an image cannot be probed, decoded, resized or encoded."""


class PersistError(AssetError):
    """Raised when an asset cannot be written to the output tree."""


class AudioError(AssetError):
    """Raised when audio metadata is requested for a non-audio or unreadable asset."""
