"""Harbinger: nightly maintainer and local-first model router."""

from harbinger._version import __version__
from harbinger.maintainer.engine import MaintainerEngine
from harbinger.maintainer.safe_fixer import SafeFixer
from harbinger.router.engine import ModelRouter

__all__ = [
    "__version__",
    "MaintainerEngine",
    "SafeFixer",
    "ModelRouter",
]
