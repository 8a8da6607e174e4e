"""
GitHub API client shared by close_pr and list_pr.

Wraps the handful of REST and GraphQL calls the tools need and turns
HTTP failures into the exceptions in github_errors.py.
"""

import logging
import os
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from github_errors import APIError, AuthError, ConfigError, NotFoundError, TransportError

logger = logging.getLogger(__name__)

ENV_TOKEN = 'GITHUB_TOKEN'
DEFAULT_API_URL = 'https://api.github.com'
DEFAULT_TIMEOUT = 30
SEARCH_PAGE_SIZE = 100

SEARCH_QUERY = """
query($query: String!, $cursor: String) {
  search(query: $query, type: ISSUE, first: %d, after: $cursor) {
    nodes {
      __typename
      ... on PullRequest {
        number
        title
        state
        url
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
""" % SEARCH_PAGE_SIZE


@dataclass(frozen=True)
class Config:
    """Settings read once at startup"""
    token: str
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_API_URL + '/graphql'
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'Config':
        env = os.environ if environ is None else environ

        token = env.get(ENV_TOKEN, '').strip()
        if not token:
            raise ConfigError(f"Environment variable {ENV_TOKEN} must be set")

        api_url = env.get('GITHUB_API_URL', DEFAULT_API_URL).rstrip('/')
        graphql_url = env.get('GITHUB_GRAPHQL_URL', f'{api_url}/graphql')

        raw_timeout = env.get('GITHUB_TIMEOUT', str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"GITHUB_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
        if timeout <= 0:
            raise ConfigError(f"GITHUB_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(token=token, api_url=api_url, graphql_url=graphql_url, timeout=timeout)


@dataclass(frozen=True)
class PullRequest:
    """Snapshot of a pull request as returned by the lookup"""
    id: str
    number: int
    title: str
    state: str  # 'open', 'closed' or 'merged'
    base_repo_id: Optional[int]
    base_repo_name: Optional[str]
    head_ref: str
    head_repo_id: Optional[int]
    head_repo_name: Optional[str]

    @property
    def is_open(self) -> bool:
        return self.state == 'open'

    @property
    def is_same_repo(self) -> bool:
        return self.head_repo_id is not None and self.head_repo_id == self.base_repo_id

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'PullRequest':
        state = data['state']
        if state == 'closed' and data.get('merged'):
            state = 'merged'

        base_repo = (data.get('base') or {}).get('repo') or {}
        head = data.get('head') or {}
        # head.repo is null when the fork has been deleted
        head_repo = head.get('repo') or {}

        return cls(
            id=data.get('node_id', ''),
            number=data['number'],
            title=data.get('title', ''),
            state=state,
            base_repo_id=base_repo.get('id'),
            base_repo_name=base_repo.get('full_name'),
            head_ref=head.get('ref', ''),
            head_repo_id=head_repo.get('id'),
            head_repo_name=head_repo.get('full_name'),
        )


@dataclass(frozen=True)
class PullRequestSummary:
    number: int
    title: str
    state: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'title': self.title,
            'state': self.state,
            'url': self.url,
        }

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'PullRequestSummary':
        return cls(
            number=node['number'],
            title=node['title'],
            state=node['state'].lower(),
            url=node['url'],
        )


@dataclass(frozen=True)
class SearchPage:
    summaries: List[PullRequestSummary]
    end_cursor: Optional[str]
    has_next_page: bool


class GitHubClient:
    def __init__(self, config: Config):
        self.config = config
        self.headers = {
            'Authorization': f'Bearer {config.token}',
            'Accept': 'application/vnd.github.v3+json'
        }

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send one request and raise on anything but a 2xx response"""
        logger.debug(f"{method} {url}")
        try:
            response = requests.request(
                method, url, headers=self.headers, timeout=self.config.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug(f"{method} {url} -> {response.status_code}")

        if response.status_code in (401, 403):
            raise AuthError(f"GitHub rejected the token ({response.status_code}): {response.text}")
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if not 200 <= response.status_code < 300:
            raise APIError(f"{method} {url} returned {response.status_code}: {response.text}")
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise APIError(f"GitHub returned a non-JSON body: {response.text[:200]}") from None

    def _repo_url(self, owner: str, repo: str) -> str:
        return f'{self.config.api_url}/repos/{owner}/{repo}'

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequest:
        """Fetch a pull request by number"""
        try:
            response = self._request('GET', f'{self._repo_url(owner, repo)}/pulls/{number}')
        except NotFoundError:
            raise NotFoundError(f"PR {number} not found in {owner}/{repo}") from None
        return PullRequest.from_api(self._json(response))

    def create_comment(self, owner: str, repo: str, number: int, body: str) -> Dict[str, Any]:
        """Post a comment on a pull request's conversation"""
        response = self._request(
            'POST', f'{self._repo_url(owner, repo)}/issues/{number}/comments', json={'body': body}
        )
        return self._json(response)

    def close_pull_request(self, owner: str, repo: str, number: int) -> Dict[str, Any]:
        response = self._request(
            'PATCH', f'{self._repo_url(owner, repo)}/pulls/{number}', json={'state': 'closed'}
        )
        return self._json(response)

    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        # escape each segment so "#" or "%" in a name cannot change the target ref
        ref = '/'.join(urllib.parse.quote(part, safe='') for part in branch.split('/'))
        self._request('DELETE', f'{self._repo_url(owner, repo)}/git/refs/heads/{ref}')

    def search_page(self, query: str, cursor: Optional[str] = None) -> SearchPage:
        """
        Run one page of a GitHub search restricted to pull requests.

        A None cursor fetches the first page. Plain issues matched by the
        query are dropped from the page.
        """
        response = self._request(
            'POST',
            self.config.graphql_url,
            json={'query': SEARCH_QUERY, 'variables': {'query': query, 'cursor': cursor}},
        )
        payload = self._json(response)

        if isinstance(payload, dict) and payload.get('errors'):
            messages = '; '.join(err.get('message', str(err)) for err in payload['errors'])
            raise APIError(f"GraphQL search failed: {messages}")

        data = payload.get('data') if isinstance(payload, dict) else None
        if not data or not data.get('search'):
            raise APIError("GraphQL search returned no data")
        search = data['search']
        summaries = [
            PullRequestSummary.from_node(node)
            for node in search['nodes']
            if node and node.get('__typename') == 'PullRequest'
        ]
        page_info = search['pageInfo']
        return SearchPage(
            summaries=summaries,
            end_cursor=page_info.get('endCursor'),
            has_next_page=bool(page_info.get('hasNextPage')),
        )

    def search_pull_requests(self, query: str) -> List[PullRequestSummary]:
        """Collect every page of a pull request search, in page order"""
        results: List[PullRequestSummary] = []
        cursor = None
        while True:
            page = self.search_page(query, cursor)
            results.extend(page.summaries)
            logger.debug(f"Fetched {len(page.summaries)} results ({len(results)} total)")
            if not page.has_next_page:
                break
            if not page.end_cursor:
                raise APIError("GraphQL search reported more pages but no cursor")
            cursor = page.end_cursor
        return results
