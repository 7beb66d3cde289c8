from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest


@dataclass
class FakeNode:
    """Minimal content-repository node satisfying NodeProtocol."""

    identifier: str
    path: str
    workspace_name: str = "user-admin"
    repository: Dict[str, "FakeNode"] = field(default_factory=dict, repr=False, compare=False)

    def get_node(self, path: str) -> Optional["FakeNode"]:
        return self.repository.get(path)


class FakeResponse:
    def __init__(self, content: Dict[str, Any]):
        self._content = content

    def treated_content(self) -> Dict[str, Any]:
        return self._content


class FakeTransport:
    """Records every submitted request and answers with a canned body."""

    def __init__(self, content: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.content = content if content is not None else {}
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    def request(self, method, endpoint, headers=None, body=None):
        self.requests.append(
            {"method": method, "endpoint": endpoint, "headers": headers, "body": body}
        )
        if self.error is not None:
            raise self.error
        return FakeResponse(self.content)


def top_hits_response(*paths: Any, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Builds a search response whose top hits project the given node paths."""
    filtered: Dict[str, Any] = {
        "doc_count": len(paths),
        "top_node_hits": {
            "hits": {
                "total": len(paths),
                "hits": [
                    {"_index": "typo3cr", "_id": str(i), "_source": {"__path": p}}
                    for i, p in enumerate(paths)
                ],
            }
        },
    }
    filtered.update(extra or {})
    return {"took": 3, "hits": {"total": len(paths), "hits": []}, "aggregations": {"filtered": filtered}}


@pytest.fixture
def repository() -> Dict[str, FakeNode]:
    return {}


@pytest.fixture
def make_node(repository):
    def _make(identifier: str, path: str, workspace_name: str = "user-admin") -> FakeNode:
        node = FakeNode(identifier, path, workspace_name, repository)
        repository[path] = node
        return node

    return _make


@pytest.fixture
def site_node(make_node) -> FakeNode:
    return make_node("site-identifier", "/sites/acme")


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def make_top_hits_response():
    return top_hits_response
