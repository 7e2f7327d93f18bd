from abc import ABC, abstractmethod


class AbstractUserDirectory(ABC):
	"""Interface for looking up registered users in the auth backend."""

	@abstractmethod
	async def email_exists(self, email: str) -> bool:
		"""Return whether an account is registered for ``email``.

		Args:
			email: Normalized (trimmed, lower-cased) email address.

		Returns:
			bool: True when a matching account exists.

		Raises:
			DirectoryAppError: If the backend cannot be queried.
		"""
		...

	async def aclose(self) -> None:
		"""Release any network resources held by the directory."""
		return None
