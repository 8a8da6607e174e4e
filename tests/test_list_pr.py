"""Tests for the list-pr command."""

import json
from unittest.mock import patch

import pytest
import requests

from github_client import PullRequestSummary
from github_errors import AuthError
from list_pr import main


@pytest.fixture(autouse=True)
def token(monkeypatch):
    monkeypatch.setenv('GITHUB_TOKEN', 'secret')


@pytest.fixture
def mock_client():
    with patch('list_pr.GitHubClient') as client_cls:
        yield client_cls.return_value


def test_prints_json_array(mock_client, capsys):
    mock_client.search_pull_requests.return_value = [
        PullRequestSummary(1, 'First', 'open', 'https://github.com/acme/widgets/pull/1'),
        PullRequestSummary(2, 'Second', 'merged', 'https://github.com/acme/widgets/pull/2'),
    ]

    assert main(['repo:acme/widgets']) == 0

    mock_client.search_pull_requests.assert_called_once_with('repo:acme/widgets')
    assert json.loads(capsys.readouterr().out) == [
        {'number': 1, 'title': 'First', 'state': 'open',
         'url': 'https://github.com/acme/widgets/pull/1'},
        {'number': 2, 'title': 'Second', 'state': 'merged',
         'url': 'https://github.com/acme/widgets/pull/2'},
    ]


def test_no_results(mock_client, capsys):
    mock_client.search_pull_requests.return_value = []

    assert main(['is:pr label:nothing']) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_api_error_exits_non_zero(mock_client, capsys, caplog):
    mock_client.search_pull_requests.side_effect = AuthError('GitHub rejected the token (401)')

    assert main(['is:pr']) == 1
    assert capsys.readouterr().out == ''
    assert 'rejected the token' in caplog.text


def test_missing_token(mock_client, monkeypatch):
    monkeypatch.delenv('GITHUB_TOKEN')

    assert main(['is:pr']) == 2
    mock_client.search_pull_requests.assert_not_called()


def test_missing_query(mock_client, capsys):
    assert main([]) == 2
    assert 'usage: list-pr' in capsys.readouterr().err


def test_extra_arguments(mock_client):
    assert main(['is:pr', 'extra']) == 2
    mock_client.search_pull_requests.assert_not_called()


@patch('github_client.requests.request')
def test_non_json_response_exits_non_zero(mock_request, capsys):
    response = requests.Response()
    response.status_code = 200
    response._content = b'<html>proxy</html>'
    mock_request.return_value = response

    assert main(['is:pr']) == 1
    assert capsys.readouterr().out == ''
