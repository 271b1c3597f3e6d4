"""Unit tests for pre-funded account discovery."""

from unittest.mock import MagicMock, patch

import requests

from world_migrator.services.accounts import get_predeployed_accounts


def _response(body):
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


def _factory(address, private_key):
    return ("account", address, private_key)


class TestGetPredeployedAccounts:
    @patch("world_migrator.services.accounts.requests.post")
    def test_accounts_are_built_with_factory(self, mock_post):
        mock_post.return_value = _response(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": [
                    {"address": "0x1", "private_key": "0x11", "initial_balance": "1"},
                    {"address": "0x2", "private_key": "0x22"},
                ],
            }
        )

        accounts = get_predeployed_accounts("http://localhost:5050", _factory)

        assert accounts == [("account", 1, 0x11), ("account", 2, 0x22)]
        _, kwargs = mock_post.call_args
        assert kwargs["json"]["method"] == "dev_predeployedAccounts"
        assert kwargs["timeout"] > 0

    @patch("world_migrator.services.accounts.requests.post")
    def test_connection_failure_yields_no_account(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        assert get_predeployed_accounts("http://localhost:5050", _factory) == []

    @patch("world_migrator.services.accounts.requests.post")
    def test_http_error_yields_no_account(self, mock_post):
        response = _response({})
        response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_post.return_value = response
        assert get_predeployed_accounts("http://localhost:5050", _factory) == []

    @patch("world_migrator.services.accounts.requests.post")
    def test_invalid_json_yields_no_account(self, mock_post):
        response = _response(None)
        response.json.side_effect = ValueError("not json")
        mock_post.return_value = response
        assert get_predeployed_accounts("http://localhost:5050", _factory) == []

    @patch("world_migrator.services.accounts.requests.post")
    def test_unsupported_method_yields_no_account(self, mock_post):
        mock_post.return_value = _response(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}
        )
        assert get_predeployed_accounts("http://localhost:5050", _factory) == []

    @patch("world_migrator.services.accounts.requests.post")
    def test_malformed_entries_are_skipped(self, mock_post):
        mock_post.return_value = _response(
            {"result": [{"address": "0x1"}, "junk", {"address": "0x3", "private_key": "0x33"}]}
        )
        assert get_predeployed_accounts("http://localhost:5050", _factory) == [
            ("account", 3, 0x33)
        ]
