"""
Ingestion Layer

RESPONSIBILITY: Read-only loading of the network graph
OUTPUTS: GraphSnapshot, StatusUpdate (immutable)
"""

from .fetcher import FetcherConfig, GraphFetcher
from .sample import SAMPLE_GRAPH, SAMPLE_METERS, sample_snapshot

__all__ = ['FetcherConfig', 'GraphFetcher', 'SAMPLE_GRAPH', 'SAMPLE_METERS', 'sample_snapshot']
