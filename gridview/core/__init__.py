"""
Core Topology

RESPONSIBILITY: Structural relations between network elements
ALLOWED INPUTS: GraphSnapshot from contracts
OUTPUTS: Element references and plain metrics

WHAT THIS LAYER MUST NOT DO:
============================
- Fetch data (ingestion layer's job)
- Produce glyphs or coordinates (visualization layer's job)
- Hold interaction state
"""

from .topology import GridTopology, TopologyMetrics

__all__ = ['GridTopology', 'TopologyMetrics']
