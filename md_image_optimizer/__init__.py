"""Markdown image reference optimizer and asset compression toolkit.

Rewrites image references in markdown documentation for faster pages and
drives external compressors to shrink the images themselves.

Key features:
- Lazy loading (``loading="lazy"``) and responsive styles for ``<img>`` tags
- ``<picture>`` blocks with WebP sources for local asset images
- Alt-text cleanup ("Screenshot of ..." prefixes, file extensions)
- Byte-exact reassembly: text outside rewritten references is untouched
- PNG/JPEG compression and WebP generation via optipng, pngquant,
  jpegoptim and cwebp
- Asset analysis reports and size-budget checks
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("md-image-optimizer")
except PackageNotFoundError:
    __version__ = "0.0.0"  # fallback for uninstalled dev usage

from md_image_optimizer.document import (  # noqa: E402
    DocumentResult,
    Rewrite,
    apply_rewrites,
    optimize_document,
)
from md_image_optimizer.models import OptimizationStats, OptimizerOptions  # noqa: E402
from md_image_optimizer.references import (  # noqa: E402
    ImageReference,
    ReferenceKind,
    scan_references,
)
from md_image_optimizer.rewriter import (  # noqa: E402
    optimize_alt_text,
    rewrite_html_image,
    rewrite_markdown_image,
    rewrite_reference,
)

__all__ = [
    "apply_rewrites",
    "DocumentResult",
    "ImageReference",
    "optimize_alt_text",
    "optimize_document",
    "OptimizationStats",
    "OptimizerOptions",
    "ReferenceKind",
    "Rewrite",
    "rewrite_html_image",
    "rewrite_markdown_image",
    "rewrite_reference",
    "scan_references",
]
