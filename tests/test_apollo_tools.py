"""Unit tests for apollo_tools — people search."""
from unittest.mock import MagicMock, patch

from tools.apollo_tools import DEFAULT_TITLES, apollo_people_search


APOLLO_MODULE = "tools.apollo_tools"


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestApolloPeopleSearch:
    @patch(f"{APOLLO_MODULE}.requests.post")
    @patch(f"{APOLLO_MODULE}._api_key", return_value="test-key")
    def test_maps_people(self, mock_key, mock_post):
        mock_post.return_value = _response({"people": [
            {"first_name": "Jane", "last_name": "Doe", "email": "jane@mag.co.za",
             "title": "Editor", "organization": {"name": "Mag"},
             "linkedin_url": "https://linkedin.com/in/jane", "email_status": "verified"},
            {"first_name": "Lee", "last_name": None, "organization": None},
        ]})

        result = apollo_people_search("amapiano", country="ZA")

        jane, lee = result["contacts"]
        assert jane == {
            "name": "Jane Doe",
            "email": "jane@mag.co.za",
            "title": "Editor",
            "company": "Mag",
            "linkedin": "https://linkedin.com/in/jane",
            "email_verified": True,
        }
        assert lee["name"] == "Lee"
        assert lee["company"] == ""
        assert lee["email_verified"] is False

    @patch(f"{APOLLO_MODULE}.requests.post")
    @patch(f"{APOLLO_MODULE}._api_key", return_value="test-key")
    def test_request_body(self, mock_key, mock_post):
        mock_post.return_value = _response({"people": []})

        apollo_people_search("bloggers", country="UK", per_page=500)

        body = mock_post.call_args.kwargs["json"]
        assert body["q_keywords"] == "bloggers"
        assert body["person_locations"] == ["United Kingdom"]
        assert body["person_titles"] == DEFAULT_TITLES
        assert body["per_page"] == 100
        assert mock_post.call_args.kwargs["headers"]["X-Api-Key"] == "test-key"

    @patch(f"{APOLLO_MODULE}.requests.post", side_effect=RuntimeError("401 Unauthorized"))
    @patch(f"{APOLLO_MODULE}._api_key", return_value="test-key")
    def test_handles_error_gracefully(self, mock_key, mock_post):
        result = apollo_people_search("q")
        assert result["contacts"] == []
        assert "401" in result["error"]

    @patch(f"{APOLLO_MODULE}._api_key", return_value=None)
    def test_skips_without_api_key(self, mock_key):
        assert apollo_people_search("q")["skipped"] == "APOLLO_API_KEY not set"
