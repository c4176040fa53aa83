"""Mod models and the normalized mod set used as a cache identity."""

import hashlib
import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Mods whose transform depends on a random seed; results must never be cached.
NON_DETERMINISTIC_MODS = frozenset({"RD"})

CLASSIC = "CL"


class Mod(BaseModel):
    """A named modifier with optional user-configurable settings.

    Mirrors the osu! API v2 ``{"acronym": ..., "settings": {...}}`` shape.
    """

    model_config = ConfigDict(frozen=True)

    acronym: str
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("acronym")
    @classmethod
    def normalize_acronym(cls, v: str) -> str:
        acronym = v.strip().upper()
        if not acronym:
            raise ValueError("Mod acronym must not be empty")
        return acronym

    def setting(self, name: str, default: Any = None) -> Any:
        return self.settings.get(name, default)


def classic_mod() -> Mod:
    """Build the Classic mod; the acronym is shared by all four rulesets."""
    return Mod(acronym=CLASSIC)


@dataclass(frozen=True, slots=True)
class ModSet:
    """Normalized identity of a set of mods.

    Two mod sets are equal iff their sorted acronyms and the digest of their
    settings match. The original ``Mod`` objects are kept for the collaborators
    but take no part in equality.
    """

    acronyms: tuple[str, ...] = ()
    settings_hash: str = ""
    mods: tuple[Mod, ...] = field(default=(), compare=False, hash=False, repr=False)

    @classmethod
    def of(cls, mods: Iterable[Mod | str] | None = None) -> "ModSet":
        """Normalize ``mods`` (Mod objects or bare acronyms) into a ModSet."""
        normalized = [m if isinstance(m, Mod) else Mod(acronym=m) for m in mods or ()]
        ordered = tuple(sorted(normalized, key=lambda m: m.acronym))
        return cls(
            acronyms=tuple(m.acronym for m in ordered),
            settings_hash=_settings_digest(ordered),
            mods=ordered,
        )

    def __iter__(self) -> Iterator[Mod]:
        return iter(self.mods)

    def __len__(self) -> int:
        return len(self.acronyms)

    def __contains__(self, acronym: object) -> bool:
        return acronym in self.acronyms

    def get(self, acronym: str) -> Mod | None:
        for mod in self.mods:
            if mod.acronym == acronym:
                return mod
        return None

    def has(self, acronym: str) -> bool:
        return acronym in self.acronyms

    @property
    def is_classic(self) -> bool:
        return self.has(CLASSIC)

    @property
    def is_deterministic(self) -> bool:
        return not any(a in NON_DETERMINISTIC_MODS for a in self.acronyms)

    def __str__(self) -> str:
        return "".join(self.acronyms) or "NM"


def _settings_digest(mods: tuple[Mod, ...]) -> str:
    configured = [[m.acronym, m.settings] for m in mods if m.settings]
    if not configured:
        return ""
    payload = json.dumps(configured, sort_keys=True, default=str)
    return hashlib.sha1(payload.encode()).hexdigest()
