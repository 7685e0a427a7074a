"""
app/connectors package marker.
"""

from app.connectors.base import ConnectorRequestError, JSONHTTPConnector
from app.connectors.tmdb_connector import TMDBCatalogConnector, get_catalog_lookup

__all__ = [
    "ConnectorRequestError",
    "JSONHTTPConnector",
    "TMDBCatalogConnector",
    "get_catalog_lookup",
]
