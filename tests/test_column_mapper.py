from __future__ import annotations

import unittest

from app.domain.watchlist_import import DetectedSource
from app.mappers.column_mapper import ColumnMapper, normalize_header
from app.parsers.csv_parser import parse_csv

NATIVE_HEADER = (
    "Order,Title,Type,URL,IMDB ID,Release Date,Year,Genre,Description,"
    "Directors/Creators,Runtime,IMDB Rating,Note,Date Created,Date Modified"
)
IMDB_HEADER = (
    "Position,Const,Created,Modified,Description,Title,URL,Title Type,"
    "IMDb Rating,Runtime (mins),Year,Genres,Num Votes,Release Date,Directors"
)
TMDB_HEADER = "TMDb ID,IMDb ID,Type,Name,Release Date,Your Rating"


def _document(header: str, row: str = ""):
    values = row or ",".join("x" for _ in header.split(","))
    return parse_csv(f"{header}\n{values}\n")


class TestSourceDetection(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = ColumnMapper()

    def test_native_export_header_is_detected(self) -> None:
        source, mapping = self.mapper.detect_and_map(_document(NATIVE_HEADER))

        self.assertEqual(source, DetectedSource.NATIVE)
        self.assertEqual(mapping.source, DetectedSource.NATIVE)
        self.assertEqual(mapping.get("url"), "URL")
        self.assertEqual(mapping.get("mediaType"), "Type")
        self.assertEqual(mapping.get("imdbId"), "IMDB ID")
        self.assertEqual(mapping.get("note"), "Note")
        self.assertFalse(mapping.has("externalId"))
        self.assertEqual(set(mapping.match_strategies.values()), {"signature"})

    def test_imdb_export_is_detected_and_mapped(self) -> None:
        source, mapping = self.mapper.detect_and_map(_document(IMDB_HEADER))

        self.assertEqual(source, DetectedSource.IMDB)
        self.assertEqual(mapping.get("imdbId"), "Const")
        self.assertEqual(mapping.get("mediaType"), "Title Type")
        self.assertEqual(mapping.get("order"), "Position")
        self.assertEqual(mapping.get("note"), "Description")

    def test_tmdb_export_is_detected_and_mapped(self) -> None:
        source, mapping = self.mapper.detect_and_map(_document(TMDB_HEADER))

        self.assertEqual(source, DetectedSource.TMDB)
        self.assertEqual(mapping.get("title"), "Name")
        self.assertEqual(mapping.get("externalId"), "TMDb ID")
        self.assertEqual(mapping.get("imdbId"), "IMDb ID")

    def test_detection_ignores_case_whitespace_and_separators(self) -> None:
        source, _ = self.mapper.detect_and_map(_document("order,TITLE,type,url,date_created"))

        self.assertEqual(source, DetectedSource.NATIVE)

    def test_native_wins_when_several_signatures_match(self) -> None:
        header = "Order,Title,Type,URL,Date Created,Const,Title Type"

        source, _ = self.mapper.detect_and_map(_document(header))

        self.assertEqual(source, DetectedSource.NATIVE)

    def test_partial_signature_falls_back_to_generic(self) -> None:
        source, _ = self.mapper.detect_and_map(_document("Const,Title"))

        self.assertEqual(source, DetectedSource.GENERIC)

    def test_detection_is_idempotent(self) -> None:
        document = _document(IMDB_HEADER)

        first = self.mapper.detect_and_map(document)
        second = self.mapper.detect_and_map(document)

        self.assertEqual(first, second)


class TestGenericMapping(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = ColumnMapper()

    def test_exact_and_alias_headers_are_mapped(self) -> None:
        source, mapping = self.mapper.detect_and_map(_document("Title,Type,Year"))

        self.assertEqual(source, DetectedSource.GENERIC)
        self.assertEqual(mapping.get("title"), "Title")
        self.assertEqual(mapping.get("mediaType"), "Type")
        self.assertEqual(mapping.get("year"), "Year")
        self.assertEqual(mapping.match_strategies["mediaType"], "exact_or_alias")

    def test_synonyms_map_to_canonical_fields(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Name,Kind,TMDB ID,Comments"))

        self.assertEqual(mapping.get("title"), "Name")
        self.assertEqual(mapping.get("mediaType"), "Kind")
        self.assertEqual(mapping.get("externalId"), "TMDB ID")
        self.assertEqual(mapping.get("note"), "Comments")

    def test_misspelled_header_is_matched_fuzzily(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Movie Titel,Kind,Released"))

        self.assertEqual(mapping.get("title"), "Movie Titel")
        self.assertEqual(mapping.match_strategies["title"], "fuzzy")
        self.assertEqual(mapping.get("releaseDate"), "Released")

    def test_rating_columns_never_claim_identifiers(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Title,Year,TMDB Rating,IMDb Rating,Num Votes"))

        self.assertEqual(mapping.canonical_to_source, {"title": "Title", "year": "Year"})

    def test_bare_source_name_only_matches_exactly(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Title,TMDB,IMDb Link"))

        self.assertEqual(mapping.get("externalId"), "TMDB")
        self.assertNotEqual(mapping.get("imdbId"), "IMDb Link")

    def test_generic_date_column_maps_to_release_date(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Title,Type,TMDB ID,Date"))

        self.assertEqual(mapping.get("releaseDate"), "Date")
        self.assertFalse(mapping.has("firstAirDate"))

    def test_air_date_column_still_maps_to_first_air_date(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Title,Type,Original Air Date"))

        self.assertEqual(mapping.get("firstAirDate"), "Original Air Date")
        self.assertFalse(mapping.has("releaseDate"))

    def test_each_header_is_claimed_once(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Title,Name"))

        self.assertEqual(mapping.get("title"), "Title")
        self.assertEqual(list(mapping.canonical_to_source.values()).count("Title"), 1)

    def test_unrelated_headers_leave_fields_absent(self) -> None:
        _, mapping = self.mapper.detect_and_map(_document("Foo,Bar"))

        self.assertEqual(mapping.canonical_to_source, {})
        self.assertFalse(mapping.has("title"))

    def test_value_reads_stripped_cell_or_empty_string(self) -> None:
        document = parse_csv("Title,Type\n  Heat  ,movie\n")
        _, mapping = self.mapper.detect_and_map(document)

        self.assertEqual(mapping.value(document.rows[0], "title"), "Heat")
        self.assertEqual(mapping.value(document.rows[0], "note"), "")

    def test_normalize_header(self) -> None:
        self.assertEqual(normalize_header(" Date_Created "), "datecreated")
        self.assertEqual(normalize_header("Title-Type"), "titletype")


if __name__ == "__main__":
    unittest.main()
