"""
Slug Resolver Module
Maps free-text dealer names onto canonical slugs and resolves reporting scopes.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Set

from .records import DealerProfile

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SUFFIX = re.compile(r"^(.*?)-([a-z0-9]{6})$")

SCOPE_ALL = "all"
SCOPE_DEALER = "dealer"
SCOPE_GROUP = "group"


def slugify(name: Optional[str]) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim hyphens."""
    if name is None:
        return ""
    return _NON_ALNUM.sub("-", str(name).lower()).strip("-")


def normalize_slug(raw_slug: Optional[str]) -> str:
    """Strip an opaque six-character disambiguation suffix, if present."""
    slug = str(raw_slug or "").lower()
    match = _SUFFIX.match(slug)
    return match.group(1) if match else slug


def prettify_dealer_name(slug: str) -> str:
    """Display fallback for a slug with no profile ('forest-glen' -> 'Forest Glen')."""
    words = slug.replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def resolve_group_membership(
    group_name: str,
    dealer_profiles: Mapping[str, DealerProfile],
    rosters: Mapping[str, List[str]],
) -> Set[str]:
    """
    Slugs of all known profiles whose display name is on the group's roster.

    Roster entries that match no profile are dropped.
    """
    roster = None
    wanted = group_name.strip().lower()
    for name, names in rosters.items():
        if name.strip().lower() == wanted:
            roster = names
            break
    if roster is None:
        logger.debug("No roster configured for group %r", group_name)
        return set()

    roster_slugs = {slugify(name) for name in roster}
    members = set()
    for slug, profile in dealer_profiles.items():
        display = profile.name or slug
        if slugify(display) in roster_slugs:
            members.add(profile.slug or slug)

    unmatched = roster_slugs - {slugify(p.name or s) for s, p in dealer_profiles.items()}
    if unmatched:
        logger.debug("Group %r roster entries with no profile: %s", group_name, sorted(unmatched))
    return members


# =============================================================================
# SCOPES
# =============================================================================

@dataclass(frozen=True)
class Scope:
    """Which dealers a recomputation covers: one dealer, a named group, or all."""
    kind: str = SCOPE_ALL
    value: str = ""

    @classmethod
    def all(cls) -> "Scope":
        return cls(SCOPE_ALL, "")

    @classmethod
    def dealer(cls, slug: str) -> "Scope":
        return cls(SCOPE_DEALER, normalize_slug(slug))

    @classmethod
    def group(cls, name: str) -> "Scope":
        return cls(SCOPE_GROUP, name)

    @classmethod
    def parse(cls, text: Optional[str], rosters: Mapping[str, List[str]] = None) -> "Scope":
        """
        Interpret a scope descriptor typed by a user.

        Empty or "all" means every dealer; a configured group name means that
        group; anything else is treated as a dealer slug.
        """
        value = (text or "").strip()
        if not value or value.lower() == SCOPE_ALL:
            return cls.all()
        for name in (rosters or {}):
            if name.strip().lower() == value.lower():
                return cls.group(name)
        return cls.dealer(value)

    @property
    def label(self) -> str:
        if self.kind == SCOPE_ALL:
            return "Overall"
        return self.value


@dataclass(frozen=True)
class ResolvedScope:
    """A scope flattened to the set of dealer slugs it covers."""
    scope: Scope
    slugs: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_all(self) -> bool:
        return self.scope.kind == SCOPE_ALL

    def matches(self, dealer_slug: str) -> bool:
        if self.is_all:
            return True
        return dealer_slug in self.slugs


def resolve_scope(
    scope: Scope,
    dealer_profiles: Mapping[str, DealerProfile],
    rosters: Mapping[str, List[str]],
) -> ResolvedScope:
    """Flatten a Scope to dealer slugs."""
    if scope.kind == SCOPE_DEALER:
        slugs = {scope.value} if scope.value else set()
    elif scope.kind == SCOPE_GROUP:
        slugs = resolve_group_membership(scope.value, dealer_profiles, rosters)
    else:
        slugs = {
            profile.slug or slug
            for slug, profile in dealer_profiles.items()
            if not profile.is_group
        }
    return ResolvedScope(scope=scope, slugs=frozenset(slugs))


def dealer_display_name(
    scope: Scope,
    dealer_profiles: Dict[str, DealerProfile],
) -> str:
    """Heading for a scope: profile name, else a prettified slug."""
    if scope.kind == SCOPE_ALL:
        return "Overall"
    if scope.kind == SCOPE_GROUP:
        return scope.value
    profile = dealer_profiles.get(scope.value)
    if profile and profile.name:
        return profile.name
    return prettify_dealer_name(scope.value)
