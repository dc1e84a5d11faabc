"""Unit tests for apify_tools — profile scrape normalization."""
from unittest.mock import patch

import pytest

from tools.apify_tools import clean_username, fetch_instagram_profile, fetch_tiktok_profile


APIFY_MODULE = "tools.apify_tools"


class TestCleanUsername:
    @pytest.mark.parametrize("handle,platform,expected", [
        ("@mover", "tiktok", "mover"),
        ("https://www.tiktok.com/@dancer?lang=en", "tiktok", "dancer"),
        ("tiktok.com/@dancer/video/1", "tiktok", "dancer"),
        ("@gallery", "instagram", "gallery"),
        ("https://www.instagram.com/gallery/", "instagram", "gallery"),
        ("instagram.com/gallery", "instagram", "gallery"),
        ("  plain  ", "instagram", "plain"),
    ])
    def test_reduces_to_username(self, handle, platform, expected):
        assert clean_username(handle, platform) == expected


class TestFetchTiktokProfile:
    @patch(f"{APIFY_MODULE}._run_actor")
    @patch(f"{APIFY_MODULE}._token", return_value="t")
    def test_maps_author_and_videos(self, mock_token, mock_run):
        mock_run.return_value = [
            {
                "authorMeta": {
                    "name": "mover", "nickName": "Soweto Mover", "signature": "amapiano dance",
                    "fans": 15000, "bioLink": {"link": "https://linktr.ee/mover"}, "avatar": "https://pic",
                },
                "text": "new routine #amapiano",
                "createTimeISO": "2026-02-20T10:00:00.000Z",
                "playCount": 1000, "diggCount": 90, "commentCount": 10,
                "hashtags": [{"name": "amapiano"}, {"name": "dance"}],
            },
            {"text": "older", "createTime": 1767225600, "stats": {"playCount": 500, "diggCount": 5}},
        ]

        result = fetch_tiktok_profile("@mover")

        profile = result["profile"]
        assert profile["username"] == "mover"
        assert profile["display_name"] == "Soweto Mover"
        assert profile["bio"] == "amapiano dance"
        assert profile["followers"] == 15000
        assert profile["website"] == "https://linktr.ee/mover"
        first, second = profile["recent_posts"]
        assert first["hashtags"] == ["amapiano", "dance"]
        assert first["views"] == 1000
        assert second["posted_at"] == 1767225600
        assert second["views"] == 500
        assert second["comments"] == 0
        payload = mock_run.call_args.args[1]
        assert payload["profiles"] == ["https://www.tiktok.com/@mover"]

    @patch(f"{APIFY_MODULE}._run_actor", return_value=[])
    @patch(f"{APIFY_MODULE}._token", return_value="t")
    def test_not_found(self, mock_token, mock_run):
        assert fetch_tiktok_profile("@ghost") == {"profile": None}

    @patch(f"{APIFY_MODULE}._run_actor", side_effect=RuntimeError("502 Bad Gateway"))
    @patch(f"{APIFY_MODULE}._token", return_value="t")
    def test_actor_failure(self, mock_token, mock_run):
        result = fetch_tiktok_profile("@mover")
        assert result["profile"] is None
        assert "502" in result["error"]

    @patch(f"{APIFY_MODULE}._token", return_value=None)
    def test_skips_without_token(self, mock_token):
        assert fetch_tiktok_profile("@mover")["skipped"] == "APIFY_API_TOKEN not set"


class TestFetchInstagramProfile:
    @patch(f"{APIFY_MODULE}._run_actor")
    @patch(f"{APIFY_MODULE}._token", return_value="t")
    def test_maps_profile_and_latest_posts(self, mock_token, mock_run):
        mock_run.return_value = [{
            "username": "gallery",
            "fullName": "The Gallery",
            "biography": "Cape Town art space",
            "followersCount": 2400,
            "externalUrl": "https://gallery.example",
            "businessCategoryName": "Art Gallery",
            "latestPosts": [
                {"caption": "opening night", "timestamp": "2026-02-01T18:00:00Z",
                 "likesCount": 120, "commentsCount": 8, "hashtags": ["art"]},
            ],
        }]

        result = fetch_instagram_profile("https://www.instagram.com/gallery/")

        profile = result["profile"]
        assert profile["platform"] == "instagram"
        assert profile["display_name"] == "The Gallery"
        assert profile["followers"] == 2400
        assert profile["business_category"] == "Art Gallery"
        assert profile["recent_posts"] == [{
            "caption": "opening night",
            "posted_at": "2026-02-01T18:00:00Z",
            "likes": 120,
            "comments": 8,
            "hashtags": ["art"],
        }]
        assert mock_run.call_args.args[1] == {"usernames": ["gallery"], "resultsLimit": 5}
