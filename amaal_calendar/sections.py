"""Structured sub-content of a rule, shaped for display.

The expander passes ``sections`` through untouched; this module is what the
text output and the ``/sections`` endpoint use to turn the raw mapping into
ordered headed blocks. Two dataset shapes exist in the wild:

* ``flat``: one bag of keys, ``<prefix>_heading`` paired with
  ``<prefix>_bullets`` (``[{"level": 1, "text": ...}]``) and/or
  ``<prefix>_lines``, plus heading-less ``*_bullets``/``*_lines`` keys;
* ``context_amaal``: a fixed ``context`` / ``amaal`` pair.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

SECTION_SHAPES = ("flat", "context_amaal")

SECTION_ICONS = {
    "general": "📋",
    "intro": "📋",
    "context": "ℹ️",
    "amaal": "🤲",
    "recitations": "📖",
    "dhikr": "🔤",
    "supplications": "🤲",
    "prayers": "🕌",
}
BULLET_MARKERS = {1: "●", 2: "○"}


@dataclass
class BulletNode:
    level: int
    text: str
    children: List["BulletNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "text": self.text,
                "children": [c.to_dict() for c in self.children]}


@dataclass
class Section:
    key: str
    heading: Optional[str] = None
    lines: List[str] = field(default_factory=list)
    bullets: List[BulletNode] = field(default_factory=list)

    @property
    def icon(self) -> str:
        return section_icon(self.key)

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "heading": self.heading, "icon": self.icon,
                "lines": list(self.lines), "bullets": [b.to_dict() for b in self.bullets]}


def section_icon(key: str) -> str:
    lower = key.lower()
    for k, icon in SECTION_ICONS.items():
        if k in lower:
            return icon
    return "•"


# ---------------- Bullets ----------------------
def build_bullet_tree(bullets: Optional[List[Mapping[str, Any]]]) -> List[BulletNode]:
    """Rebuild nesting from flat ``(level, text)`` pairs.

    ``stack[i]`` is the open node at depth ``i`` (``stack[0]`` is the root), so
    a bullet of level ``n`` becomes a child of ``stack[n - 1]``. Blank texts are
    dropped and levels below 1 count as 1. A level that skips ahead attaches
    to the deepest open node.
    """
    root = BulletNode(0, "")
    stack = [root]
    for b in bullets or ():
        if not b:
            continue
        text = str(b.get("text") or "")
        if not text.strip():
            continue
        try:
            lvl = max(1, int(b.get("level") or 1))
        except (TypeError, ValueError):
            lvl = 1
        node = BulletNode(lvl, text)
        del stack[lvl:]
        stack[-1].children.append(node)
        stack.append(node)
    return root.children


def render_bullets(nodes: List[BulletNode], indent: int = 0) -> List[str]:
    out: List[str] = []
    for n in nodes:
        out.append("  " * indent + f"{BULLET_MARKERS.get(n.level, '■')} {n.text}")
        out.extend(render_bullets(n.children, indent + 1))
    return out


# ---------------- Sections ---------------------
def _clean_heading(v: Any) -> str:
    return str(v or "").replace("*", "").strip()


def _lines(v: Any) -> List[str]:
    if isinstance(v, str):
        return [v] if v.strip() else []
    return [str(x) for x in (v or []) if str(x).strip()]


def _body(key: str, heading: Optional[str], v: Any) -> Section:
    # a body is either plain lines or a list of {level, text} bullets
    if isinstance(v, list) and any(isinstance(x, Mapping) for x in v):
        return Section(key, heading, bullets=build_bullet_tree([x for x in v if isinstance(x, Mapping)]))
    return Section(key, heading, lines=_lines(v))


def _flat(sections: Mapping[str, Any]) -> List[Section]:
    out: List[Section] = []
    visited = set()
    for key in sections:
        if not key.endswith("_heading"):
            continue
        prefix = key[: -len("_heading")]
        sec = Section(prefix, _clean_heading(sections[key]))
        visited.add(key)
        for suffix in ("_bullets", "_lines"):
            k = prefix + suffix
            if k in sections:
                visited.add(k)
                body = _body(prefix, sec.heading, sections[k])
                sec.bullets.extend(body.bullets)
                sec.lines.extend(body.lines)
        if sec.bullets or sec.lines:
            out.append(sec)
    for key, v in sections.items():
        if key in visited or not (key.endswith("_bullets") or key.endswith("_lines")):
            continue
        prefix = key.rsplit("_", 1)[0]
        sec = _body(prefix, None, v)
        if sec.bullets or sec.lines:
            out.append(sec)
    return out


def _context_amaal(sections: Mapping[str, Any]) -> List[Section]:
    out: List[Section] = []
    for key, heading in (("context", "Context"), ("amaal", "Amaal")):
        if key not in sections:
            continue
        sec = _body(key, heading, sections[key])
        if sec.bullets or sec.lines:
            out.append(sec)
    return out


def normalize_sections(sections: Optional[Mapping[str, Any]], shape: str = "flat") -> List[Section]:
    if not sections:
        return []
    if shape == "flat":
        return _flat(sections)
    if shape == "context_amaal":
        return _context_amaal(sections)
    raise ValueError(f"unknown section shape {shape!r}; choose from {', '.join(SECTION_SHAPES)}")


def render_text(sections: Optional[Mapping[str, Any]], fallback: str = "", shape: str = "flat") -> str:
    """Plain-text rendering; ``fallback`` (the rule text) when nothing is structured."""
    blocks = normalize_sections(sections, shape)
    if not blocks:
        return fallback
    out: List[str] = []
    for sec in blocks:
        if sec.heading:
            out.append(f"{sec.icon} {sec.heading.upper()}")
        out.extend(sec.lines)
        out.extend(render_bullets(sec.bullets))
        out.append("")
    return "\n".join(out).rstrip()
