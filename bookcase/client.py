"""HTTP client for Google Books API with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 40


def author_queries(name: str) -> List[str]:
    """Catalog queries used to collect an author's bibliography."""
    return [f'inauthor:"{name}"', f'"{name}" author']


class GoogleBooksClient:
    """Client for Google Books API with timeouts, retries, and backoff."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_backoff: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def build_params(
        self,
        query: str,
        max_results: int = MAX_PAGE_SIZE,
        start_index: int = 0,
        order_by: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {
            "q": query,
            "maxResults": min(max_results, MAX_PAGE_SIZE),  # API limit
            "startIndex": start_index,
            "printType": "books",
        }
        if order_by:
            params["orderBy"] = order_by
        if self.api_key:
            params["key"] = self.api_key
        return params

    def search(
        self,
        query: str,
        max_results: int = MAX_PAGE_SIZE,
        start_index: int = 0,
        order_by: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Search for books.

        Args:
            query: Search query string
            max_results: Maximum results to return (1-40)
            start_index: Pagination offset
            order_by: "relevance" or "newest"

        Returns:
            API response JSON or None if all retries failed
        """
        params = self.build_params(query, max_results, start_index, order_by)
        return self._make_request_with_retry(self.BASE_URL, params)

    def _make_request_with_retry(
        self,
        url: str,
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request with retry logic.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Response JSON or None if all retries exhausted
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {params.get('q')}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                if response.status_code == 200:
                    return response.json()

                elif response.status_code == 429 or response.status_code >= 500:
                    logger.warning(f"Retryable status ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 400:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    return None

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except ValueError as e:
                logger.error(f"Invalid JSON in response: {e}")
                return None

        logger.error(f"All {self.max_retries} attempts failed")
        return None

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def search_with_cache(
        self,
        query: str,
        max_results: int = MAX_PAGE_SIZE,
        start_index: int = 0,
        cache_db=None,
        cache_ttl: int = 3600
    ) -> Optional[Dict[str, Any]]:
        """
        Search with database-backed caching.

        Args:
            query: Search query
            max_results: Max results
            start_index: Pagination offset
            cache_db: Database instance (optional)
            cache_ttl: Cache TTL in seconds

        Returns:
            API response or None
        """
        cache_key = f"books:search:{query}:{max_results}:{start_index}"

        if cache_db:
            cached = cache_db.cache_get(cache_key)
            if cached:
                return cached

        response = self.search(query, max_results, start_index)

        if response and cache_db:
            cache_db.cache_set(cache_key, response, cache_ttl)

        return response

    def search_author(
        self,
        name: str,
        cache_db=None,
        cache_ttl: int = 3600
    ) -> List[Dict[str, Any]]:
        """
        Run every author query and collect the successful responses.

        Args:
            name: Normalized author name
            cache_db: Database instance (optional)
            cache_ttl: Cache TTL in seconds

        Returns:
            List of API responses
        """
        responses = []
        for query in author_queries(name):
            response = self.search_with_cache(query, cache_db=cache_db, cache_ttl=cache_ttl)
            if response:
                responses.append(response)
        return responses

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
