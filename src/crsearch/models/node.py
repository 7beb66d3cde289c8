from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class NodeProtocol(Protocol):
    """
    Structural protocol for a content-repository record ("node").

    The query builder never loads nodes itself; it only reads the attributes
    below from the node that scopes a query, and asks that same node to resolve
    the paths returned by the search engine back into live records.

    Any repository object providing these members can be passed to
    [`QueryBuilder.query()`][crsearch.models.query.builders.QueryBuilder.query]
    or used as a value in
    [`QueryBuilder.exact_match()`][crsearch.models.query.builders.QueryBuilder.exact_match].
    """

    @property
    def identifier(self) -> str:
        """The unique identifier of the record, stable across workspaces."""
        ...

    @property
    def path(self) -> str:
        """The absolute path of the record inside the repository tree."""
        ...

    @property
    def workspace_name(self) -> str:
        """The name of the workspace the record was loaded from."""
        ...

    def get_node(self, path: str) -> Optional["NodeProtocol"]:
        """
        Resolves `path` relative to this record's context.

        Returns `None` when no live record exists at that path.
        """
        ...
