"""Core records, crowd, merging, families, ancestors and GEDCOM export."""

from wikitree_lifelines.core.errors import (
    ConflictUnresolved,
    DateFormatFault,
    InvalidRecord,
    MalformedStoreLiteral,
    WikiTreeLifelinesError,
)
from wikitree_lifelines.core.models import (
    ALL_RELATIONS,
    Person,
    Relation,
    family_key,
    simplify,
)
from wikitree_lifelines.core.merge import (
    FixedDecider,
    MergeDecision,
    MergeResolver,
    PromptDecider,
    ScriptedDecider,
)
from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.families import Family, FamilyGrouper
from wikitree_lifelines.core.ancestors import AncestorArray, AncestorTreeBuilder
from wikitree_lifelines.core.crawler import RelativeGraphCrawler
from wikitree_lifelines.core.gedcom import GedcomRenderer

__all__ = [
    "ConflictUnresolved",
    "DateFormatFault",
    "InvalidRecord",
    "MalformedStoreLiteral",
    "WikiTreeLifelinesError",
    "ALL_RELATIONS",
    "Person",
    "Relation",
    "family_key",
    "simplify",
    "FixedDecider",
    "MergeDecision",
    "MergeResolver",
    "PromptDecider",
    "ScriptedDecider",
    "Crowd",
    "Family",
    "FamilyGrouper",
    "AncestorArray",
    "AncestorTreeBuilder",
    "RelativeGraphCrawler",
    "GedcomRenderer",
]
