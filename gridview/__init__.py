"""
Gridview: Single-Line Diagram Core

Renders an electrical network (buses, lines, transformers, breakers,
disconnectors, meters) as an interactive single-line diagram. Each layer
communicates only through the immutable types in contracts/.

LAYER STRUCTURE:
================

1. INGESTION LAYER (ingestion/)
   - Responsibility: Read-only fetch of the network graph
   - Outputs: GraphSnapshot (immutable, replaced as a whole)
   - MUST NOT: Draw, cache scenes, or repair integrity problems

2. CORE TOPOLOGY (core/)
   - Responsibility: Structural relations (incidence, connected sections)
   - Outputs: Element references
   - MUST NOT: Produce geometry

3. VISUALIZATION LAYER (visualization/)
   - Responsibility: Symbols, colour classes, scene composition, SVG
   - Outputs: Scene with diagnostics
   - MUST NOT: Hold state between compositions

4. INTERACTION LAYER (interaction/)
   - Responsibility: Pan/zoom, hit-testing, hover and selection
   - Outputs: ViewTransform, SelectionEvent, HoverEvent, ViewportChangedEvent

5. OBSERVABILITY (observability/)
   - Responsibility: Append-only audit log of what every layer did

engine.py ties the layers together in DiagramSession; api/ exposes a
read-only HTTP view of the composed diagram.
"""

from .contracts import *  # noqa: F401,F403
from .contracts import __all__ as _contracts_all
from .engine import DiagramConfig, DiagramSession

__version__ = "0.1.0"

__all__ = list(_contracts_all) + ['DiagramConfig', 'DiagramSession']
