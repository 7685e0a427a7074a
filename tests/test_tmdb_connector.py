"""
tests/test_tmdb_connector.py

Unit tests for the TMDB catalog connector using a stubbed HTTP session.
"""

from __future__ import annotations

import unittest
from datetime import date
from typing import Any

import requests

from app.config import ExternalHTTPSettings, TMDBSettings
from app.connectors.tmdb_connector import TMDBCatalogConnector
from app.domain.catalog import CatalogLookupError


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class _StubSession:
    def __init__(self, responses: list[_FakeResponse | Exception]) -> None:
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def get(self, url: str, *, params=None, headers=None, timeout=None) -> _FakeResponse:
        self.requests.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


MOVIE_DETAILS = {
    "id": 27205,
    "title": "Inception",
    "poster_path": "/poster.jpg",
    "backdrop_path": "/backdrop.jpg",
    "release_date": "2010-07-15",
    "overview": "Dreams within dreams.",
    "runtime": 148,
    "vote_average": 8.369,
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "external_ids": {"imdb_id": "tt1375666"},
    "credits": {
        "crew": [
            {"name": "Christopher Nolan", "job": "Director"},
            {"name": "Hans Zimmer", "job": "Original Music Composer"},
        ]
    },
}


class TestTMDBCatalogConnector(unittest.TestCase):
    def _connector(
        self, responses: list[_FakeResponse | Exception]
    ) -> tuple[TMDBCatalogConnector, _StubSession]:
        session = _StubSession(responses)
        connector = TMDBCatalogConnector(
            settings=TMDBSettings(api_key="secret-token", base_url="https://tmdb.test/3"),
            http_settings=ExternalHTTPSettings(
                max_retries=2,
                backoff_initial_seconds=0.1,
                rate_limit_per_second=1000.0,
            ),
            session=session,
            sleep=self.delays.append,
        )
        return connector, session

    def setUp(self) -> None:
        self.delays: list[float] = []

    def test_movie_details_are_parsed(self) -> None:
        connector, session = self._connector([_FakeResponse(200, MOVIE_DETAILS)])

        item = connector.get_details(27205, "movie")

        self.assertIsNotNone(item)
        self.assertEqual(item.title, "Inception")
        self.assertEqual(item.release_date, date(2010, 7, 15))
        self.assertEqual(item.imdb_id, "tt1375666")
        self.assertEqual(item.genres, ("Action", "Science Fiction"))
        self.assertEqual(item.people, ("Christopher Nolan",))
        self.assertEqual(item.runtime_minutes, 148)
        self.assertEqual(item.vote_average, 8.369)

        sent = session.requests[0]
        self.assertEqual(sent["url"], "https://tmdb.test/3/movie/27205")
        self.assertEqual(sent["params"]["append_to_response"], "external_ids,credits")
        self.assertEqual(sent["params"]["language"], "en-US")
        self.assertEqual(sent["headers"]["Authorization"], "Bearer secret-token")

    def test_tv_details_use_creators_and_average_runtime(self) -> None:
        payload = {
            "id": 1396,
            "name": "Breaking Bad",
            "first_air_date": "2008-01-20",
            "episode_run_time": [45, 49],
            "created_by": [{"name": "Vince Gilligan"}],
            "external_ids": {"imdb_id": "tt0903747"},
        }
        connector, _ = self._connector([_FakeResponse(200, payload)])

        item = connector.get_details(1396, "tv")

        self.assertEqual(item.media_type, "tv")
        self.assertEqual(item.release_date, date(2008, 1, 20))
        self.assertEqual(item.runtime_minutes, 47)
        self.assertEqual(item.people, ("Vince Gilligan",))

    def test_not_found_returns_none(self) -> None:
        connector, session = self._connector([_FakeResponse(404, {"status_code": 34})])

        self.assertIsNone(connector.get_details(1, "movie"))
        self.assertEqual(len(session.requests), 1)

    def test_unknown_media_type_skips_request(self) -> None:
        connector, session = self._connector([])

        self.assertIsNone(connector.get_details(1, "person"))
        self.assertEqual(session.requests, [])

    def test_retryable_status_is_retried_with_backoff(self) -> None:
        connector, session = self._connector(
            [_FakeResponse(503), _FakeResponse(429), _FakeResponse(200, MOVIE_DETAILS)]
        )

        item = connector.get_details(27205, "movie")

        self.assertEqual(item.external_id, 27205)
        self.assertEqual(len(session.requests), 3)
        backoff = [delay for delay in self.delays if delay >= 0.1]
        self.assertEqual(len(backoff), 2)
        self.assertAlmostEqual(backoff[0], 0.1)
        self.assertAlmostEqual(backoff[1], 0.2)

    def test_exhausted_retries_raise_catalog_error(self) -> None:
        connector, session = self._connector([_FakeResponse(500)] * 3)

        with self.assertRaises(CatalogLookupError):
            connector.get_details(27205, "movie")
        self.assertEqual(len(session.requests), 3)

    def test_rejected_request_raises_without_retry(self) -> None:
        connector, session = self._connector([_FakeResponse(401, {"status_message": "Invalid API key"})])

        with self.assertRaises(CatalogLookupError):
            connector.search_title("Inception")
        self.assertEqual(len(session.requests), 1)

    def test_connection_error_is_retried(self) -> None:
        connector, session = self._connector(
            [requests.ConnectionError("reset by peer"), _FakeResponse(200, MOVIE_DETAILS)]
        )

        item = connector.get_details(27205, "movie")

        self.assertEqual(item.external_id, 27205)
        self.assertEqual(len(session.requests), 2)

    def test_other_transport_errors_raise_catalog_error_without_retry(self) -> None:
        errors = (requests.TooManyRedirects("redirect loop"), requests.exceptions.ChunkedEncodingError("truncated"))
        for error in errors:
            with self.subTest(error=type(error).__name__):
                connector, session = self._connector([error])

                with self.assertRaises(CatalogLookupError):
                    connector.get_details(27205, "movie")
                self.assertEqual(len(session.requests), 1)

    def test_unrated_title_has_no_vote_average(self) -> None:
        connector, _ = self._connector([_FakeResponse(200, {**MOVIE_DETAILS, "vote_average": 0})])

        self.assertIsNone(connector.get_details(27205, "movie").vote_average)

    def test_find_by_imdb_id_falls_back_to_tv_results(self) -> None:
        payload = {
            "movie_results": [],
            "tv_results": [{"id": 1396, "name": "Breaking Bad", "first_air_date": "2008-01-20"}],
        }
        connector, session = self._connector([_FakeResponse(200, payload)])

        item = connector.find_by_imdb_id("tt0903747")

        self.assertEqual((item.external_id, item.media_type), (1396, "tv"))
        self.assertEqual(item.imdb_id, "tt0903747")
        self.assertEqual(session.requests[0]["params"]["external_source"], "imdb_id")

    def test_typed_search_passes_year_filter(self) -> None:
        connector, session = self._connector(
            [_FakeResponse(200, {"results": [{"id": 1396, "name": "Breaking Bad"}]})]
        )

        item = connector.search_title("Breaking Bad", media_type="tv", year=2008)

        self.assertEqual(item.external_id, 1396)
        self.assertTrue(session.requests[0]["url"].endswith("/search/tv"))
        self.assertEqual(session.requests[0]["params"]["first_air_date_year"], 2008)

    def test_multi_search_filters_year_client_side(self) -> None:
        payload = {
            "results": [
                {"id": 1, "media_type": "person", "name": "Heat"},
                {"id": 2, "media_type": "movie", "title": "Heat", "release_date": "1986-03-14"},
                {"id": 949, "media_type": "movie", "title": "Heat", "release_date": "1995-12-15"},
            ]
        }
        connector, session = self._connector([_FakeResponse(200, payload)])

        item = connector.search_title("Heat", year=1995)

        self.assertEqual(item.external_id, 949)
        self.assertTrue(session.requests[0]["url"].endswith("/search/multi"))


if __name__ == "__main__":
    unittest.main()
