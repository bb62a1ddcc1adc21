"""
Tests for the TMDB client (requests session mocked)
"""
from unittest.mock import MagicMock

import pytest
import requests

from exceptions import MetadataProviderException
from services.tmdb_client import TMDBClient, poster_url, tmdb_media_path


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error", response=response)
    return response


@pytest.fixture
def client():
    client = TMDBClient(api_key="test-key", timeout=5)
    client.session = MagicMock()
    return client


class TestHelpers:
    """Tests for poster_url and tmdb_media_path"""

    def test_poster_url(self):
        assert poster_url("/a.jpg") == "https://image.tmdb.org/t/p/w500/a.jpg"
        assert poster_url("/a.jpg", "w92", "https://img.example/") == "https://img.example/w92/a.jpg"
        assert poster_url(None) is None

    def test_media_paths(self):
        assert tmdb_media_path("movie") == "movie"
        assert tmdb_media_path("series") == "tv"
        assert tmdb_media_path("TV") == "tv"
        with pytest.raises(ValueError):
            tmdb_media_path("podcast")


class TestTMDBClient:
    """Tests for TMDBClient requests"""

    def test_search_normalizes_results(self, client):
        client.session.get.return_value = _response({
            "results": [
                {"id": 1396, "name": "Breaking Bad", "first_air_date": "2008-01-20", "poster_path": "/bb.jpg"},
            ]
        })

        results = client.search("breaking", "tv")

        url = client.session.get.call_args[0][0]
        params = client.session.get.call_args[1]["params"]
        assert url.endswith("/search/tv")
        assert params["query"] == "breaking"
        assert params["api_key"] == "test-key"
        assert client.session.get.call_args[1]["timeout"] == 5
        assert results == [{
            "id": 1396,
            "media_type": "series",
            "title": "Breaking Bad",
            "release_date": "2008-01-20",
            "overview": None,
            "poster_path": "/bb.jpg",
            "poster_url": "https://image.tmdb.org/t/p/w92/bb.jpg",
            "vote_average": None,
        }]

    def test_blank_search_makes_no_request(self, client):
        assert client.search("   ") == []
        client.session.get.assert_not_called()

    def test_details_append_credits(self, client):
        client.session.get.return_value = _response({"id": 27205, "title": "Inception"})

        data = client.get_details(27205, "movie")

        assert data["title"] == "Inception"
        assert client.session.get.call_args[0][0].endswith("/movie/27205")
        assert client.session.get.call_args[1]["params"]["append_to_response"] == "credits"

    def test_http_error_raises_provider_exception(self, client):
        client.session.get.return_value = _response({"status_message": "nope"}, status_code=404)

        with pytest.raises(MetadataProviderException):
            client.get_details(1, "movie")

    def test_timeout_raises_provider_exception(self, client):
        client.session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(MetadataProviderException):
            client.get_details(1, "movie")

    def test_malformed_json_raises_provider_exception(self, client):
        response = _response(None)
        response.json.side_effect = ValueError("bad json")
        client.session.get.return_value = response

        with pytest.raises(MetadataProviderException):
            client.get_similar(1, "movie")

    def test_unconfigured_client_refuses(self):
        client = TMDBClient()
        assert client.is_configured is False
        with pytest.raises(MetadataProviderException):
            client.get_details(1, "movie")

    def test_bearer_token_header(self):
        client = TMDBClient(access_token="token")
        assert client.session.headers["Authorization"] == "Bearer token"

    def test_watch_providers_by_region(self, client):
        client.session.get.return_value = _response({"results": {"US": {"flatrate": [{"provider_name": "Netflix"}]}}})

        assert client.get_watch_providers(1, "movie", "us") == {"flatrate": [{"provider_name": "Netflix"}]}

    def test_person_credits(self, client):
        client.session.get.return_value = _response({
            "id": 525,
            "cast": [{"id": 1, "title": "Cameo", "media_type": "movie"}],
            "crew": [{"id": 27205, "title": "Inception", "media_type": "movie", "job": "Director"}],
        })

        credits = client.get_person_credits(525)

        assert credits["cast"][0]["title"] == "Cameo"
        assert credits["crew"][0]["job"] == "Director"
        assert client.session.get.call_args[0][0].endswith("/person/525/combined_credits")

    def test_from_settings(self):
        client = TMDBClient.from_settings({"tmdb": {"access_token": "abc", "timeout": 3}})
        assert client.is_configured
        assert client.timeout == 3
