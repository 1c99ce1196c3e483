"""
Skill normalization.

Raw skill strings coming from CVs, gap analyses and job descriptions are
reduced to a constrained token alphabet before any comparison, and expanded
into the set of alias tokens considered equivalent.
"""

import re
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Tuple


_DISALLOWED = re.compile(r"[^a-z0-9+#]")


def normalize(skill: str) -> str:
    """
    Reduce a raw skill to its token form.

    Lower-cases, drops every character outside ``[a-z0-9+#]`` and trims.

    Args:
        skill: Raw skill spelling, e.g. ``"Node.js"``

    Returns:
        str: Normalized token, e.g. ``"nodejs"``
    """
    if not skill:
        return ""
    return _DISALLOWED.sub("", skill.lower().strip())


def _build_alias_table(raw: Mapping[str, Iterable[str]]) -> Mapping[str, FrozenSet[str]]:
    """Normalize every canonical name and alias once, at import time."""
    table: Dict[str, FrozenSet[str]] = {}
    for canonical, aliases in raw.items():
        tokens = {normalize(canonical)}
        tokens.update(normalize(alias) for alias in aliases)
        tokens.discard("")
        table[normalize(canonical)] = frozenset(tokens)
    return MappingProxyType(table)


# Canonical skill -> spellings that mean the same thing
SKILL_VARIATIONS: Mapping[str, FrozenSet[str]] = _build_alias_table({
    "javascript": ["js", "ecmascript"],
    "typescript": ["ts"],
    "react": ["reactjs", "react.js"],
    "node": ["nodejs", "node.js"],
    "postgres": ["postgresql", "psql"],
    "python": ["py"],
    "golang": ["go"],
    "c++": ["cpp", "cplusplus"],
    "c#": ["csharp", "dotnet", ".net"],
    "vue": ["vuejs", "vue.js"],
    "angular": ["angularjs"],
    "nextjs": ["next.js", "next"],
    "docker": ["containers"],
    "kubernetes": ["k8s"],
    "aws": ["amazon web services"],
    "gcp": ["google cloud", "google cloud platform"],
    "azure": ["microsoft azure"],
    "mongodb": ["mongo"],
    "redis": ["redisdb"],
    "graphql": ["gql"],
    "tailwind": ["tailwindcss", "tailwind css"],
    "sass": ["scss"],
    "jest": ["testing"],
    "vitest": ["testing"],
    "cypress": ["e2e testing"],
    "playwright": ["e2e testing"],
})


def variations(skill: str, alias_table: Mapping[str, FrozenSet[str]] = SKILL_VARIATIONS) -> FrozenSet[str]:
    """
    Return the variation set of a skill.

    The set always contains the normalized token itself, plus every alias
    group the token belongs to.

    Args:
        skill: Raw skill spelling
        alias_table: Canonical token -> equivalent tokens

    Returns:
        FrozenSet[str]: Equivalent tokens
    """
    token = normalize(skill)
    tokens = {token}
    for group in alias_table.values():
        if token in group:
            tokens.update(group)
    return frozenset(tokens)


def normalized_pair(skill: str) -> Tuple[str, FrozenSet[str]]:
    """Shortcut returning ``(normalize(skill), variations(skill))``."""
    return normalize(skill), variations(skill)
