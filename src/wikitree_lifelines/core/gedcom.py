"""
GEDCOM 5.5.1 export driven by declarative templates.

A template is a tree of nodes:

- LiteralNode: fixed text
- FieldNode: an attribute of the source object, formatted by a format
  string with one slot or by a function returning a string or a list of
  strings. An absent or blank attribute makes the node disappear.
- CompositeNode: tags mapped to child nodes, in output order, with an
  optional 'code' (the @xref@ of a level 0 record) and 'data' (the line's
  own value).

A composite whose code, data and children all disappear disappears too, so
a person without death information gets no DEAT record at all.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Union

from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.errors import DateFormatFault

logger = logging.getLogger(__name__)

MONTHS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
          "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]

_ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")

Formatter = Union[str, Callable[[Any], Union[str, list[str], None]]]


@dataclass
class GedcomLine:
    """A single GEDCOM line."""
    level: int
    tag: str
    value: str = ""
    xref: str | None = None  # @I123@ style ID

    def to_string(self) -> str:
        """Format as: level [xref] tag [value]"""
        parts = [str(self.level)]
        if self.xref:
            parts.append(self.xref)
        parts.append(self.tag)
        if self.value:
            parts.append(self.value)
        return " ".join(parts)


@dataclass(frozen=True)
class LiteralNode:
    text: str


@dataclass(frozen=True)
class FieldNode:
    name: str
    formatter: Formatter = "{}"


@dataclass(frozen=True)
class CompositeNode:
    children: dict[str, Node] = field(default_factory=dict)
    code: Node | None = None
    data: Node | None = None


Node = Union[LiteralNode, FieldNode, CompositeNode]


@dataclass
class _Resolved:
    """A composite node filled in from a source object."""
    code: str | None
    data: str | None
    children: list[tuple[str, Any]]


def gedcom_date(value: str | date | None) -> str | None:
    """
    Convert a WikiTree date to GEDCOM: "1980-05-02" -> "2 MAY 1980".

    Zero parts are left out ("1950-00-00" -> "1950"); "0000-00-00" means
    no date. Anything else that is not a valid date raises DateFormatFault.
    """
    if isinstance(value, date):
        year, month, day = value.year, value.month, value.day
    elif isinstance(value, str):
        match = _ISO_DATE.fullmatch(value.strip())
        if not match:
            raise DateFormatFault(value)
        year, month, day = (int(part) for part in match.groups())
    else:
        raise DateFormatFault(value)

    if year == 0 and (month or day):
        raise DateFormatFault(value)
    if month == 0 and day:
        raise DateFormatFault(value)
    if month > 12 or day > 31:
        raise DateFormatFault(value)
    if year and month and day:
        try:
            date(year, month, day)
        except ValueError as e:
            raise DateFormatFault(value) from e

    parts = []
    if day:
        parts.append(str(day))
    if month:
        parts.append(MONTHS[month - 1])
    if year:
        parts.append(str(year))
    return " ".join(parts) or None


def gedcom_sex(gender: str) -> str | None:
    """'Male' -> 'M', 'Female' -> 'F'."""
    return gender.strip()[:1].upper() or None


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


def resolve(node: Node, source: Any) -> Any:
    """
    Fill node from source.

    Returns a string, a list of strings, a _Resolved composite, or None when
    the node has nothing to show.
    """
    if isinstance(node, LiteralNode):
        return node.text

    if isinstance(node, FieldNode):
        value = getattr(source, node.name, None)
        if _blank(value):
            return None
        if isinstance(node.formatter, str):
            if isinstance(value, (list, tuple)):
                result: Any = [node.formatter.format(item) for item in value]
            else:
                result = node.formatter.format(value)
        else:
            result = node.formatter(value)
        return None if _blank(result) else result

    if isinstance(node, CompositeNode):
        code = resolve(node.code, source) if node.code else None
        data = resolve(node.data, source) if node.data else None
        if isinstance(data, list):
            data = " ".join(data)
        children = []
        for tag, child in node.children.items():
            resolved = resolve(child, source)
            if resolved is not None:
                children.append((tag, resolved))
        if code is None and data is None and not children:
            return None
        return _Resolved(code=code, data=data, children=children)

    raise TypeError(f"Illegal template node {node!r}")


def assemble(tag: str, resolved: Any, level: int = 0) -> list[GedcomLine]:
    """Lay out a resolved node as GEDCOM lines, depth first."""
    if isinstance(resolved, str):
        return [GedcomLine(level=level, tag=tag, value=resolved)]
    if isinstance(resolved, list):
        return [GedcomLine(level=level, tag=tag, value=item) for item in resolved]

    lines = [GedcomLine(
        level=level,
        tag=tag,
        value=resolved.data or "",
        xref=resolved.code if level == 0 else None,
    )]
    for child_tag, child in resolved.children:
        lines.extend(assemble(child_tag, child, level + 1))
    return lines


HEAD_TEMPLATE = CompositeNode(children={
    "SOUR": CompositeNode(
        data=LiteralNode("wikitree-lifelines"),
        children={"NAME": LiteralNode("WikiTree Lifelines")},
    ),
    "GEDC": CompositeNode(children={
        "VERS": LiteralNode("5.5.1"),
        "FORM": LiteralNode("LINEAGE-LINKED"),
    }),
    "CHAR": LiteralNode("UTF-8"),
    "DATE": FieldNode("date", gedcom_date),
})

INDI_TEMPLATE = CompositeNode(
    code=FieldNode("id", "@{}@"),
    children={
        "NAME": CompositeNode(
            data=FieldNode("gedcom_name"),
            children={
                "GIVN": FieldNode("first_name"),
                "_MIDN": FieldNode("middle_name"),
                "NICK": FieldNode("nicknames"),
                "SURN": FieldNode("last_name_at_birth"),
                "_MARN": FieldNode("last_name_current"),  # also current name of men
            },
        ),
        "SEX": FieldNode("gender", gedcom_sex),
        "BIRT": CompositeNode(children={
            "DATE": FieldNode("birth_date", gedcom_date),
            "PLAC": FieldNode("birth_location"),
        }),
        "DEAT": CompositeNode(children={
            "DATE": FieldNode("death_date", gedcom_date),
            "PLAC": FieldNode("death_location"),
        }),
        "WWW": FieldNode("name", "https://www.WikiTree.com/wiki/{}"),
        "REFN": CompositeNode(
            data=FieldNode("id"),
            children={"TYPE": LiteralNode("wikitree.user_id")},
        ),
        "FAMS": FieldNode("spouse_families", "@{}@"),
        "FAMC": FieldNode("family_key", "@{}@"),
    },
)

FAM_TEMPLATE = CompositeNode(
    code=FieldNode("id", "@{}@"),
    children={
        "HUSB": FieldNode("husband", "@{}@"),
        "WIFE": FieldNode("wife", "@{}@"),
        "CHIL": FieldNode("child_ids", "@{}@"),
        "MARR": CompositeNode(children={
            "DATE": FieldNode("marriage_date", gedcom_date),
            "PLAC": FieldNode("marriage_place"),
        }),
    },
)

TEMPLATES: dict[str, CompositeNode] = {
    "HEAD": HEAD_TEMPLATE,
    "INDI": INDI_TEMPLATE,
    "FAM": FAM_TEMPLATE,
}


class GedcomRenderer:
    """Renders Persons, Families and whole Crowds as GEDCOM text."""

    def __init__(self, templates: dict[str, CompositeNode] | None = None):
        self.templates = {**TEMPLATES, **(templates or {})}

    def render(self, source: Any, tag: str) -> list[GedcomLine]:
        """Lines of one level 0 record built with the template for tag."""
        template = self.templates[tag]
        resolved = resolve(template, source)
        if resolved is None:
            return []
        return assemble(tag, resolved)

    def render_text(self, source: Any, tag: str) -> str:
        return "\n".join(line.to_string() for line in self.render(source, tag))

    def export(self, crowd: Crowd, childless: bool = False, today: date | None = None) -> str:
        """
        The whole crowd as a GEDCOM document: header, individuals,
        families, trailer.

        Families come from the crowd's memoized family map.
        """
        families = crowd.families(childless)
        lines = self.render(SimpleNamespace(date=today or date.today()), "HEAD")
        for person in crowd:
            lines.extend(self.render(person, "INDI"))
        for family in families.values():
            lines.extend(self.render(family, "FAM"))
        lines.append(GedcomLine(level=0, tag="TRLR"))
        logger.info(
            "Exported %d individuals and %d families", len(crowd), len(families)
        )
        return "\n".join(line.to_string() for line in lines) + "\n"

    def save(self, crowd: Crowd, path: str | Path, childless: bool = False) -> None:
        """Write the crowd to a GEDCOM file."""
        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            f.write(self.export(crowd, childless))
        logger.info("Wrote %s", path)
