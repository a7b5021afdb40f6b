"""
GitHub Projects (v2) ingestion client.
Walks the items of a project board through the GraphQL API, following the pagination cursor until exhausted.
"""
import logging
from typing import List, Dict, Any, Optional, Tuple
import requests
from errors import ConfigurationError, FetchError, TransportError
from normalize.models import IssueRecord
from normalize.util import normalize_project_item
from settings import Settings

logger = logging.getLogger(__name__)

PROJECT_ITEMS_QUERY = """
query ListConnectedIssuesWithLabel($projectId: ID!, $cursor: String) {
    node(id: $projectId) {
        ... on ProjectV2 {
            items(first: 100, after: $cursor) {
                pageInfo {
                    hasNextPage
                    endCursor
                }
                edges {
                    node {
                        content {
                            ... on Issue {
                                number
                                title
                                closedAt
                                labels(first: 10) {
                                    nodes {
                                        name
                                    }
                                }
                            }
                        }
                        fieldValues(first: 100) {
                            nodes {
                                ... on ProjectV2ItemFieldTextValue {
                                    text
                                    field { ... on ProjectV2FieldCommon { name } }
                                }
                                ... on ProjectV2ItemFieldSingleSelectValue {
                                    name
                                    optionId
                                    field { ... on ProjectV2FieldCommon { name } }
                                }
                                ... on ProjectV2ItemFieldNumberValue {
                                    number
                                    field { ... on ProjectV2FieldCommon { name } }
                                }
                                ... on ProjectV2ItemFieldDateValue {
                                    date
                                    field { ... on ProjectV2FieldCommon { name } }
                                }
                            }
                        }
                    }
                }
            }
        }
    }
}
"""


class ProjectItemsClient:
    """Fetches every issue on a ProjectV2 board, with their custom field values."""

    def __init__(self, token: str, project_id: str = None, endpoint: str = None, timeout: float = 30.0, user_agent: str = None):
        self.token = token
        self.project_id = project_id
        self.endpoint = endpoint or "https://api.github.com/graphql"
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {self.token}" if self.token else "",
            "Accept": "application/json",
            "User-Agent": user_agent or "roadmap-report",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> 'ProjectItemsClient':
        return cls(settings.token, settings.project_id, endpoint=settings.endpoint, timeout=settings.request_timeout, user_agent=settings.user_agent)

    def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = requests.post(self.endpoint, json={"query": query, "variables": variables}, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as ex:
            raise TransportError(f"Failed to fetch data: {ex}", endpoint=self.endpoint)
        if not 200 <= resp.status_code < 300:
            raise TransportError(f"Failed to fetch data: {resp.status_code}", status_code=resp.status_code, endpoint=self.endpoint)
        try:
            body = resp.json()
        except ValueError as ex:
            raise FetchError(f"Failed to fetch data: response was not JSON ({ex})", endpoint=self.endpoint)
        if not isinstance(body, dict):
            raise FetchError("Failed to fetch data: response was not a JSON object", endpoint=self.endpoint)
        return body

    def _extract_page(self, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Items connection of one page, or None at end of data. Raises FetchError on a GraphQL error without a node."""
        errors = body.get('errors') or []
        for err in errors:
            logger.warning("GraphQL error: %s", err.get('message') if isinstance(err, dict) else err)
        data = body.get('data')
        node = data.get('node') if isinstance(data, dict) else None
        if errors and not isinstance(node, dict):
            first = errors[0]
            detail = (first.get('type') or first.get('message')) if isinstance(first, dict) else first
            raise FetchError(f"Failed to fetch data: GraphQL error {detail}", endpoint=self.endpoint, errors=errors)
        items = node.get('items') if isinstance(node, dict) else None
        return items if isinstance(items, dict) else None

    @staticmethod
    def _page_info(items: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        info = items.get('pageInfo') or {}
        return bool(info.get('hasNextPage')), info.get('endCursor')

    @staticmethod
    def _passes_filters(issue: IssueRecord, required_label: Optional[str]) -> bool:
        if required_label is None:
            return True
        return required_label in issue.labels

    def fetch_issues(self, project_id: str = None, required_label: str = None, query: str = None) -> List[IssueRecord]:
        """Return all issues on the board, optionally only those carrying `required_label`.

        Raises TransportError on any non-success response and FetchError on an undecodable or
        errored GraphQL body; nothing collected so far is returned.
        """
        project_id = project_id or self.project_id
        if not project_id:
            raise ConfigurationError("No project id configured for the GraphQL fetch")
        query = query or PROJECT_ITEMS_QUERY

        issues: List[IssueRecord] = []
        seen = set()
        cursor = None
        page = 0
        while True:
            page += 1
            body = self._post(query, {"projectId": project_id, "cursor": cursor})
            items = self._extract_page(body)
            if items is None:
                logger.debug("Page %d carried no items payload; stopping", page)
                break

            edges = items.get('edges') or []
            logger.debug("Fetched page %d with %d items", page, len(edges))
            for edge in edges:
                issue = normalize_project_item((edge or {}).get('node') or {})
                if issue is None:
                    logger.debug("Skipping project item without issue content")
                    continue
                if not self._passes_filters(issue, required_label):
                    continue
                if issue.number in seen:
                    logger.warning("Duplicate issue #%d in project items; keeping the first", issue.number)
                    continue
                seen.add(issue.number)
                issues.append(issue)

            has_next, cursor = self._page_info(items)
            if not has_next:
                break
            if not cursor:
                logger.warning("Page %d reported more items but no end cursor; stopping", page)
                break
        return issues
