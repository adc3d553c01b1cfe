"""Fetchers package for retrieving ClickUp documents via API or local JSON dumps."""

from .base_fetcher import BaseFetcher, FetcherError
from .api_fetcher import ApiFetcher
from .local_fetcher import LocalFetcher

class FetcherFactory:
    """Factory for creating fetcher instances based on configuration."""

    @staticmethod
    def create_fetcher(config: dict, logger=None):
        """Create appropriate fetcher based on config mode.

        Args:
            config: Configuration dictionary
            logger: Logger instance

        Returns:
            BaseFetcher instance (ApiFetcher or LocalFetcher)

        Raises:
            ValueError: If mode is invalid
        """
        mode = config.get('sync', {}).get('mode', 'api')

        if mode == 'api':
            return ApiFetcher(config, logger)
        elif mode == 'local':
            return LocalFetcher(config, logger)
        else:
            raise ValueError(f"Invalid fetch mode: {mode}. Must be 'api' or 'local'.")

__all__ = [
    'BaseFetcher',
    'FetcherError',
    'ApiFetcher',
    'LocalFetcher',
    'FetcherFactory'
]
