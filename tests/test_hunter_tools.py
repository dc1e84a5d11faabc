"""Unit tests for hunter_tools — company discovery and domain search."""
from unittest.mock import MagicMock, patch

import pytest


HUNTER_MODULE = "tools.hunter_tools"


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestHunterDiscover:
    @patch(f"{HUNTER_MODULE}.requests.post")
    @patch(f"{HUNTER_MODULE}._api_key", return_value="test-key")
    def test_returns_companies_with_domains(self, mock_key, mock_post):
        mock_post.return_value = _response({"data": [
            {"domain": "mag.co.za", "organization": "Mag"},
            {"domain": "", "organization": "No Domain"},
            {"domain": "radio.co.za", "organization": "Radio"},
        ]})

        from tools.hunter_tools import hunter_discover
        result = hunter_discover("music magazines in South Africa", limit=5)

        assert result["companies"] == [
            {"domain": "mag.co.za", "organization": "Mag"},
            {"domain": "radio.co.za", "organization": "Radio"},
        ]
        assert mock_post.call_args.kwargs["json"] == {"query": "music magazines in South Africa"}
        assert mock_post.call_args.kwargs["params"] == {"api_key": "test-key"}

    @patch(f"{HUNTER_MODULE}.requests.post")
    @patch(f"{HUNTER_MODULE}._api_key", return_value="test-key")
    def test_respects_limit(self, mock_key, mock_post):
        mock_post.return_value = _response({"data": [{"domain": f"d{i}.com"} for i in range(10)]})

        from tools.hunter_tools import hunter_discover
        assert len(hunter_discover("q", limit=3)["companies"]) == 3

    @patch(f"{HUNTER_MODULE}.requests.post", side_effect=RuntimeError("network error"))
    @patch(f"{HUNTER_MODULE}._api_key", return_value="test-key")
    def test_handles_error_gracefully(self, mock_key, mock_post):
        from tools.hunter_tools import hunter_discover
        result = hunter_discover("q")
        assert result["companies"] == []
        assert "network error" in result["error"]

    @patch(f"{HUNTER_MODULE}._api_key", return_value=None)
    def test_skips_without_api_key(self, mock_key):
        from tools.hunter_tools import hunter_discover
        assert hunter_discover("q")["skipped"] == "HUNTER_API_KEY not set"


class TestHunterDomainSearch:
    @patch(f"{HUNTER_MODULE}.requests.get")
    @patch(f"{HUNTER_MODULE}._api_key", return_value="test-key")
    def test_maps_and_prioritizes_contacts(self, mock_key, mock_get):
        mock_get.return_value = _response({"data": {
            "organization": "Mag",
            "pattern": "{first}",
            "emails": [
                {"first_name": "Sam", "last_name": "Sales", "position": "Sales Rep",
                 "value": "sam@mag.co.za", "verification": {"status": "unknown"}},
                {"first_name": "Ed", "last_name": None, "position": "Senior Editor",
                 "value": "ed@mag.co.za", "verification": {"status": "valid"},
                 "linkedin": "https://linkedin.com/in/ed"},
            ],
        }})

        from tools.hunter_tools import hunter_domain_search
        result = hunter_domain_search("mag.co.za")

        assert result["organization"] == "Mag"
        assert result["email_pattern"] == "{first}"
        first, second = result["contacts"]
        assert first == {
            "name": "Ed",
            "title": "Senior Editor",
            "email": "ed@mag.co.za",
            "linkedin": "https://linkedin.com/in/ed",
            "twitter": "",
            "verified": True,
        }
        assert second["name"] == "Sam Sales"
        assert second["verified"] is False
        assert "domain=mag.co.za" in mock_get.call_args.args[0]

    @patch(f"{HUNTER_MODULE}.requests.get", side_effect=RuntimeError("429 Too Many Requests"))
    @patch(f"{HUNTER_MODULE}._api_key", return_value="test-key")
    def test_handles_error_gracefully(self, mock_key, mock_get):
        from tools.hunter_tools import hunter_domain_search
        result = hunter_domain_search("mag.co.za")
        assert result["contacts"] == []
        assert "429" in result["error"]
