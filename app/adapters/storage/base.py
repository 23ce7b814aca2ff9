from abc import ABC, abstractmethod
from typing import BinaryIO, Mapping

# Variant name -> (width, height). The original is always exposed as "o".
Thumbs = Mapping[str, tuple[int, int]]

ORIGINAL_VARIANT = "o"


class AbstractStorage(ABC):
	"""Interface for object storage backends holding uploaded images."""

	@abstractmethod
	def get(self, path: str, thumbs: Thumbs, *, webp: bool = False) -> dict[str, str]:
		"""Build public URLs for an object and its thumbnail variants.

		Args:
			path: Object key inside the bucket/root.
			thumbs: Thumbnail variants to address.
			webp: Whether the client accepts WebP, so variants may be served as WebP.

		Returns:
			dict[str, str]: ``"o"`` plus one entry per thumbnail name.
		"""
		...

	@abstractmethod
	def write(self, path: str, stream: BinaryIO, thumbs: Thumbs) -> None:
		"""Persist an object.

		Raises:
			StorageAppError: If the backend rejects the write.
		"""
		...

	@abstractmethod
	def delete(self, path: str, thumbs: Thumbs) -> None:
		"""Remove an object and its variants. Deleting a missing object succeeds.

		Raises:
			StorageAppError: If the backend rejects the delete.
		"""
		...
