"""
app/connectors/tmdb_connector.py

TMDB catalog connector used to resolve imported rows and enrich entries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from functools import lru_cache
from typing import Any

import requests

from app.config import ExternalHTTPSettings, TMDBSettings, get_external_http_settings, get_tmdb_settings
from app.connectors.base import ConnectorRequestError, JSONHTTPConnector
from app.domain.catalog import CatalogItem, CatalogLookup, CatalogLookupError
from db.models.watchlist_entry import MEDIA_TYPES, MediaType

logger = logging.getLogger(__name__)


class TMDBCatalogConnector(JSONHTTPConnector):
    """
    CatalogLookup backed by the TMDB v3 REST API.
    """

    def __init__(
        self,
        *,
        settings: TMDBSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"
        super().__init__(
            source="tmdb",
            base_url=settings.base_url,
            http_settings=http_settings,
            session=session,
            default_headers=headers,
            sleep=sleep,
        )
        self._language = settings.language

    def get_details(self, external_id: int, media_type: str) -> CatalogItem | None:
        if media_type not in MEDIA_TYPES:
            return None
        append = "external_ids,credits" if media_type == MediaType.MOVIE else "external_ids"
        payload = self._get(f"/{media_type}/{external_id}", {"append_to_response": append})
        if not isinstance(payload, dict):
            return None
        return _item_from_payload(payload, media_type)

    def find_by_imdb_id(self, imdb_id: str) -> CatalogItem | None:
        payload = self._get(f"/find/{imdb_id}", {"external_source": "imdb_id"})
        if not isinstance(payload, dict):
            return None
        for key, media_type in (("movie_results", MediaType.MOVIE), ("tv_results", MediaType.TV)):
            results = payload.get(key) or []
            if results and isinstance(results[0], dict):
                item = _item_from_payload(results[0], media_type)
                if item is not None:
                    return replace(item, imdb_id=imdb_id)
        return None

    def search_title(
        self,
        title: str,
        *,
        media_type: str | None = None,
        year: int | None = None,
    ) -> CatalogItem | None:
        params: dict[str, Any] = {"query": title, "include_adult": "false"}
        if media_type == MediaType.MOVIE:
            path = "/search/movie"
            if year is not None:
                params["year"] = year
        elif media_type == MediaType.TV:
            path = "/search/tv"
            if year is not None:
                params["first_air_date_year"] = year
        else:
            path = "/search/multi"

        payload = self._get(path, params)
        results = payload.get("results", []) if isinstance(payload, dict) else []
        for result in results:
            if not isinstance(result, dict):
                continue
            result_type = media_type or result.get("media_type")
            if result_type not in MEDIA_TYPES:
                continue
            item = _item_from_payload(result, result_type)
            if item is None:
                continue
            # Multi search has no year filter.
            if media_type is None and year is not None:
                if item.release_date is None or item.release_date.year != year:
                    continue
            return item
        return None

    def _get(self, path: str, params: dict[str, Any]) -> Any | None:
        try:
            return self.get_json(path, {**params, "language": self._language})
        except ConnectorRequestError as exc:
            raise CatalogLookupError(str(exc)) from exc


def _parse_tmdb_date(value: Any) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _runtime_minutes(payload: dict[str, Any], media_type: str) -> int | None:
    if media_type == MediaType.MOVIE:
        runtime = payload.get("runtime")
        return runtime if isinstance(runtime, int) and runtime > 0 else None
    episode_runtimes = [value for value in payload.get("episode_run_time") or [] if isinstance(value, int)]
    if not episode_runtimes:
        return None
    return round(sum(episode_runtimes) / len(episode_runtimes))


def _people(payload: dict[str, Any], media_type: str) -> tuple[str, ...]:
    if media_type == MediaType.TV:
        creators = payload.get("created_by") or []
        return tuple(person["name"] for person in creators if isinstance(person, dict) and person.get("name"))
    crew = (payload.get("credits") or {}).get("crew") or []
    return tuple(
        person["name"]
        for person in crew
        if isinstance(person, dict) and person.get("job") == "Director" and person.get("name")
    )


def _vote_average(payload: dict[str, Any]) -> float | None:
    # TMDB reports 0 for titles nobody has rated yet.
    vote = payload.get("vote_average")
    if isinstance(vote, bool) or not isinstance(vote, (int, float)) or vote <= 0:
        return None
    return float(vote)


def _item_from_payload(payload: dict[str, Any], media_type: str) -> CatalogItem | None:
    external_id = payload.get("id")
    title = payload.get("title") or payload.get("name")
    if not isinstance(external_id, int) or not title:
        return None

    release_key = "release_date" if media_type == MediaType.MOVIE else "first_air_date"
    external_ids = payload.get("external_ids") or {}
    genres = payload.get("genres") or []
    return CatalogItem(
        external_id=external_id,
        media_type=media_type,
        title=str(title),
        poster_path=payload.get("poster_path"),
        backdrop_path=payload.get("backdrop_path"),
        release_date=_parse_tmdb_date(payload.get(release_key)),
        imdb_id=external_ids.get("imdb_id") or payload.get("imdb_id"),
        overview=payload.get("overview") or None,
        genres=tuple(genre["name"] for genre in genres if isinstance(genre, dict) and genre.get("name")),
        runtime_minutes=_runtime_minutes(payload, media_type),
        people=_people(payload, media_type),
        vote_average=_vote_average(payload),
    )


@lru_cache(maxsize=1)
def get_catalog_lookup() -> CatalogLookup | None:
    """
    Build the configured catalog connector, or None when TMDB is disabled.
    """

    settings = get_tmdb_settings()
    if not settings.enabled:
        return None
    if not settings.api_key:
        logger.warning("TMDB_API_KEY is missing; catalog lookups are disabled.")
        return None
    return TMDBCatalogConnector(settings=settings, http_settings=get_external_http_settings())
