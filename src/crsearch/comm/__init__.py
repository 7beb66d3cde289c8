from .config import ClientConfig as ClientConfig
from .search_client import (
    SearchClient as SearchClient,
    SearchResponse as SearchResponse,
)
