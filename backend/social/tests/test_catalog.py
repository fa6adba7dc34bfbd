"""
Tests for the TMDB catalog client. No test touches the network.
"""

from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from social.catalog import MovieCatalog, enrich_movie
from social.exceptions import UpstreamUnavailable


def _response(status_code=200, payload=None):
    response = Mock(status_code=status_code)
    response.json.return_value = payload or {}
    return response


@override_settings(
    TMDB_API_KEY='test-key',
    TMDB_API_BASE_URL='https://catalog.test/3',
    TMDB_LANGUAGE='en-US',
    TMDB_TIMEOUT=5,
)
class MovieCatalogTestCase(SimpleTestCase):

    @patch('social.catalog.requests.get')
    def test_search(self, mock_get):
        mock_get.return_value = _response(payload={'results': [{'id': 603, 'title': 'The Matrix'}]})

        results = MovieCatalog().search('matrix')

        self.assertEqual(results, [{'id': 603, 'title': 'The Matrix'}])
        url = mock_get.call_args[0][0]
        params = mock_get.call_args[1]['params']
        self.assertEqual(url, 'https://catalog.test/3/search/movie')
        self.assertEqual(params['query'], 'matrix')
        self.assertEqual(params['api_key'], 'test-key')
        self.assertEqual(params['language'], 'en-US')
        self.assertEqual(mock_get.call_args[1]['timeout'], 5)

    @patch('social.catalog.requests.get')
    def test_popular(self, mock_get):
        mock_get.return_value = _response(payload={'results': [{'id': 1}]})

        self.assertEqual(MovieCatalog().popular(), [{'id': 1}])
        self.assertEqual(mock_get.call_args[0][0], 'https://catalog.test/3/movie/popular')

    @patch('social.catalog.requests.get')
    def test_details(self, mock_get):
        mock_get.return_value = _response(payload={'id': 603, 'title': 'The Matrix'})

        self.assertEqual(MovieCatalog().details('603')['title'], 'The Matrix')
        self.assertEqual(mock_get.call_args[0][0], 'https://catalog.test/3/movie/603')

    @patch('social.catalog.requests.get')
    def test_error_status(self, mock_get):
        mock_get.return_value = _response(status_code=401)

        with self.assertRaises(UpstreamUnavailable):
            MovieCatalog().search('matrix')

    @patch('social.catalog.requests.get')
    def test_transport_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError('down')

        with self.assertRaises(UpstreamUnavailable):
            MovieCatalog().popular()

    @patch('social.catalog.requests.get')
    def test_invalid_json(self, mock_get):
        response = _response()
        response.json.side_effect = ValueError('not json')
        mock_get.return_value = response

        with self.assertRaises(UpstreamUnavailable):
            MovieCatalog().details('1')

    @patch('social.catalog.requests.get')
    def test_non_object_json(self, mock_get):
        for payload in (['unexpected'], None, 'text'):
            response = _response()
            response.json.return_value = payload
            mock_get.return_value = response

            with self.assertRaises(UpstreamUnavailable):
                MovieCatalog().details('1')

    @patch('social.catalog.requests.get')
    def test_missing_key_never_calls_out(self, mock_get):
        with self.settings(TMDB_API_KEY=''):
            with self.assertRaises(UpstreamUnavailable):
                MovieCatalog().search('matrix')

        mock_get.assert_not_called()


class EnrichMovieTestCase(SimpleTestCase):

    def setUp(self):
        self.snapshot = {
            'tmdbId': '603',
            'title': 'Matrix',
            'posterPath': '/old.jpg',
            'releaseDate': '1999-03-30',
            'overview': '',
        }
        self.catalog = Mock()

    def test_live_values_win(self):
        self.catalog.details.return_value = {
            'title': 'The Matrix',
            'poster_path': '/new.jpg',
            'release_date': '',
            'overview': 'Neo wakes up.',
        }

        movie = enrich_movie(self.snapshot, self.catalog)

        self.assertEqual(movie['title'], 'The Matrix')
        self.assertEqual(movie['posterPath'], '/new.jpg')
        self.assertEqual(movie['releaseDate'], '1999-03-30')
        self.assertEqual(movie['overview'], 'Neo wakes up.')
        # The stored snapshot is left alone
        self.assertEqual(self.snapshot['title'], 'Matrix')

    def test_failure_falls_back_to_snapshot(self):
        self.catalog.details.side_effect = UpstreamUnavailable()

        self.assertEqual(enrich_movie(self.snapshot, self.catalog), self.snapshot)

    def test_lookups_are_memoized(self):
        self.catalog.details.side_effect = UpstreamUnavailable()
        cache = {}

        enrich_movie(self.snapshot, self.catalog, cache)
        enrich_movie(dict(self.snapshot), self.catalog, cache)

        self.catalog.details.assert_called_once_with('603')

    def test_empty_snapshot(self):
        self.assertIsNone(enrich_movie(None, self.catalog))
        self.assertEqual(enrich_movie({'title': 'No id'}, self.catalog), {'title': 'No id'})
        self.catalog.details.assert_not_called()

    def test_non_object_details_fall_back_to_snapshot(self):
        self.catalog.details.return_value = ['unexpected']

        self.assertEqual(enrich_movie(self.snapshot, self.catalog), self.snapshot)

    @override_settings(TMDB_API_KEY='test-key', TMDB_API_BASE_URL='https://catalog.test/3')
    @patch('social.catalog.requests.get')
    def test_list_body_from_live_catalog_falls_back(self, mock_get):
        mock_get.return_value = _response(payload=['unexpected'])

        self.assertEqual(enrich_movie(self.snapshot, MovieCatalog()), self.snapshot)
