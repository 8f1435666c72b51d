"""
WikiTree Lifelines

Collects profiles from WikiTree into a local crowd of persons, merges
repeated sightings, arranges ancestors and families, and exports GEDCOM.
"""

__version__ = "0.1.0"

from wikitree_lifelines.core.models import Person, Relation
from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.families import Family
from wikitree_lifelines.core.ancestors import AncestorArray, AncestorTreeBuilder
from wikitree_lifelines.core.crawler import RelativeGraphCrawler
from wikitree_lifelines.core.gedcom import GedcomRenderer

__all__ = [
    "Person",
    "Relation",
    "Crowd",
    "Family",
    "AncestorArray",
    "AncestorTreeBuilder",
    "RelativeGraphCrawler",
    "GedcomRenderer",
]
