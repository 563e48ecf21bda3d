"""
Convergence staging domain module
"""
from .cookbooks import CookbookResolver, read_metadata
from .uploader import AssetUploader, solo_rb_contents

__all__ = [
    "CookbookResolver",
    "read_metadata",
    "AssetUploader",
    "solo_rb_contents",
]
