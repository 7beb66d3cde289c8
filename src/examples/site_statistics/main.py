"""
crsearch: Site Statistics Example.

This script demonstrates both result shapes of a query:
1. An aggregation query computing price statistics and a grouping over a site subtree.
2. A record-fetch query returning the most recent pages of the same subtree.

Records are resolved through a tiny in-memory stand-in for the content
repository; in an application this is the repository's own node object.
"""

import json
import sys
from dataclasses import dataclass
from typing import Optional

import httpx
from rich.console import Console
from rich.panel import Panel

from crsearch import SearchClient, setup_sdk_logging

# Configuration Constants
SEARCH_HOST = "localhost"
SEARCH_PORT = 9200
INDEX_NAME = "typo3cr"
SITE_PATH = "/sites/acme"

console = Console()


@dataclass
class PathNode:
    """A node that resolves any path to a node at that path."""

    path: str
    workspace_name: str = "live"

    @property
    def identifier(self) -> str:
        return self.path

    def get_node(self, path: str) -> Optional["PathNode"]:
        return PathNode(path, self.workspace_name)


def run_example():
    site = PathNode(SITE_PATH)

    with SearchClient.connect(SEARCH_HOST, SEARCH_PORT, index_name=INDEX_NAME) as client:
        # --- PHASE 1: Aggregations ---
        console.print(Panel("[bold green]Phase 1: Product statistics[/bold green]"))
        builder = (
            client.query_builder()
            .query(site)
            .node_type("Acme.Shop:Product")
            .stats("price")
            .group_by_property("category")
            .log("site statistics")
        )
        console.print_json(json.dumps(builder.get_request()))
        try:
            stats = builder.execute()
        except httpx.HTTPError as e:
            console.print(f"[bold red]Query Failed:[/bold red] {e}")
            sys.exit(1)

        price = stats["stats_property"]
        console.print(f"• [bold]Products:[/bold] {price['count']}")
        console.print(f"• [bold]Price range:[/bold] {price['min']} - {price['max']}")
        for bucket in stats.get("group_by_state", {}).get("buckets", []):
            console.print(f"  - {bucket['key']}: {bucket['doc_count']}")

        # --- PHASE 2: Records ---
        console.print(Panel("[bold green]Phase 2: Latest pages[/bold green]"))
        pages = (
            client.query_builder()
            .query(site)
            .node_type("Acme.Site:Page")
            .sort_desc("publishedAt")
            .limit_records(5)
            .execute()
        )
        for page in pages:
            console.print(f"• {page.path}")


if __name__ == "__main__":
    setup_sdk_logging(level="DEBUG", pretty=True, console=console)
    run_example()
