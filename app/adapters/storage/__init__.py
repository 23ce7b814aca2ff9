"""Storage adapter layer - abstracts over object storage providers."""

from app.adapters.storage.base import AbstractStorage, Thumbs
from app.adapters.storage.factory import create_storage
from app.adapters.storage.local import LocalStorage
from app.adapters.storage.qiniu import QiniuStorage
from app.adapters.storage.signing import QiniuSigner

__all__ = [
    "AbstractStorage",
    "LocalStorage",
    "QiniuSigner",
    "QiniuStorage",
    "Thumbs",
    "create_storage",
]
