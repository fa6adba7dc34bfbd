"""
TMDB catalog client.

Two kinds of callers, two failure policies:

- Direct lookups (search, popular) let UpstreamUnavailable propagate; the
  exception handler turns it into a 500 for the client.
- Enrichment (enrich_movie) refreshes a stored MovieRef from the catalog and
  falls back to the stored snapshot on any failure. A catalog outage must
  never fail a feed, profile, or collection read.

Configuration (key, base URL, language, timeout) is read from settings at
call time so tests can override it per case.
"""

import logging
from typing import Dict, List, Optional

import requests
from django.conf import settings

from .exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

# TMDB detail field -> MovieRef key
DETAIL_FIELDS = {
    'title': 'title',
    'poster_path': 'posterPath',
    'release_date': 'releaseDate',
    'overview': 'overview',
}


class MovieCatalog:
    """Thin wrapper over the TMDB v3 REST API."""

    def __init__(self, api_key=None, base_url=None, language=None, timeout=None):
        self.api_key = settings.TMDB_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.TMDB_API_BASE_URL).rstrip('/')
        self.language = language or settings.TMDB_LANGUAGE
        self.timeout = timeout or settings.TMDB_TIMEOUT

    def _get(self, path: str, **params) -> dict:
        if not self.api_key:
            raise UpstreamUnavailable()

        params.update({'api_key': self.api_key, 'language': self.language})
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.warning("Catalog request to %s failed: %s", path, exc)
            raise UpstreamUnavailable() from exc

        if response.status_code != 200:
            logger.warning("Catalog returned %s for %s", response.status_code, path)
            raise UpstreamUnavailable()

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable() from exc

        if not isinstance(data, dict):
            logger.warning(
                "Catalog returned %s instead of an object for %s", type(data).__name__, path
            )
            raise UpstreamUnavailable()
        return data

    def search(self, query: str) -> List[Dict]:
        data = self._get(
            'search/movie',
            query=query,
            page=1,
            include_adult='false',
        )
        return data.get('results', [])

    def popular(self, page: int = 1) -> List[Dict]:
        data = self._get('movie/popular', page=page)
        return data.get('results', [])

    def details(self, tmdb_id) -> Dict:
        return self._get(f'movie/{tmdb_id}')


def get_catalog() -> MovieCatalog:
    """Return a catalog client built from the current settings."""
    return MovieCatalog()


def enrich_movie(
    snapshot: Optional[dict],
    catalog: MovieCatalog,
    cache: Optional[dict] = None,
) -> Optional[dict]:
    """
    Return a copy of a MovieRef refreshed with live catalog data.

    Live values win where the catalog has them; stored values fill the gaps.
    `cache` memoizes lookups by catalog id across one read pass, including
    failures, so a feed with the same movie twice costs one request.
    """
    if not snapshot:
        return snapshot

    movie = dict(snapshot)
    tmdb_id = movie.get('tmdbId')
    if not tmdb_id:
        return movie

    if cache is not None and tmdb_id in cache:
        live = cache[tmdb_id]
    else:
        try:
            live = catalog.details(tmdb_id)
        except UpstreamUnavailable:
            logger.warning("Using stored snapshot for movie %s", tmdb_id)
            live = None
        if cache is not None:
            cache[tmdb_id] = live

    if isinstance(live, dict):
        for source, target in DETAIL_FIELDS.items():
            if live.get(source):
                movie[target] = live[source]
    return movie
