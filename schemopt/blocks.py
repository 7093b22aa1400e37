"""Block states and the passable/solid classifier used by the flood fill."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

STATE_RE = re.compile(r"^(?P<name>[a-z0-9_.-]+:[a-z0-9_./-]+)(?:\[(?P<props>.*)\])?$")

AIR = "minecraft:air"
AIR_BLOCKS = {"minecraft:air", "minecraft:cave_air", "minecraft:void_air"}

# Blocks that never fill their whole cell, so the flood (and the eye) gets past them.
PASSABLE_BLOCKS = {
    "minecraft:water",
    "minecraft:ladder",
    "minecraft:torch",
    "minecraft:wall_torch",
    "minecraft:soul_torch",
    "minecraft:soul_wall_torch",
    "minecraft:redstone_torch",
    "minecraft:redstone_wall_torch",
    "minecraft:lantern",
    "minecraft:soul_lantern",
    "minecraft:chain",
    "minecraft:iron_bars",
    "minecraft:glass",
    "minecraft:tinted_glass",
    "minecraft:scaffolding",
    "minecraft:vine",
    "minecraft:snow",
    "minecraft:cobweb",
    "minecraft:short_grass",
    "minecraft:tall_grass",
    "minecraft:fern",
    "minecraft:dandelion",
    "minecraft:poppy",
    "minecraft:campfire",
    "minecraft:soul_campfire",
    "minecraft:fire",
    "minecraft:end_rod",
    "minecraft:lever",
    "minecraft:flower_pot",
    "minecraft:rail",
    "minecraft:redstone_wire",
}

PASSABLE_SUFFIXES = (
    "_stained_glass",
    "_pane",
    "_slab",
    "_stairs",
    "_wall",
    "_fence",
    "_fence_gate",
    "_door",
    "_trapdoor",
    "_carpet",
    "_sign",
    "_banner",
    "_button",
    "_pressure_plate",
    "_rail",
    "_torch",
    "_candle",
    "_sapling",
    "_tulip",
    "_head",
    "_skull",
)


class Passability(enum.Enum):
    SOLID = "solid"
    PASSABLE = "passable"


def parse_block_state(state: str) -> Tuple[str, Dict[str, str]]:
    m = STATE_RE.match(state.strip())
    if not m:
        raise ValueError(f"invalid block state syntax: {state}")
    name = m.group("name")
    props_raw = m.group("props")
    props: Dict[str, str] = {}
    if props_raw:
        for segment in props_raw.split(","):
            segment = segment.strip()
            if not segment:
                continue
            if "=" not in segment:
                raise ValueError(f"invalid property segment '{segment}' in state '{state}'")
            k, v = segment.split("=", 1)
            key = k.strip()
            value = v.strip()
            if not key or not value:
                raise ValueError(f"invalid property segment '{segment}' in state '{state}'")
            if key in props:
                raise ValueError(f"duplicate property '{key}' in state '{state}'")
            props[key] = value
    return name, props


def canonical_state(name: str, props: Mapping[str, str]) -> str:
    if not props:
        return name
    return f"{name}[{','.join(f'{k}={props[k]}' for k in sorted(props))}]"


def base_name(identifier: str) -> str:
    return identifier.split("[", 1)[0]


@dataclass(frozen=True)
class BlockState:
    name: str
    properties: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def of(cls, name: str, properties: Optional[Mapping[str, str]] = None) -> "BlockState":
        props = tuple(sorted((str(k), str(v)) for k, v in (properties or {}).items()))
        return cls(name=name, properties=props)

    @classmethod
    def parse(cls, state: str) -> "BlockState":
        name, props = parse_block_state(state)
        return cls.of(name, props)

    @property
    def props(self) -> Dict[str, str]:
        return dict(self.properties)

    def matches(self, identifier: str) -> bool:
        """Bare names match any properties; ``name[k=v]`` must match the full state."""
        if "[" not in identifier:
            return self.name == identifier
        return str(self) == str(BlockState.parse(identifier))

    def __str__(self) -> str:
        return canonical_state(self.name, self.props)


AIR_STATE = BlockState(AIR)

BlockLike = Union[BlockState, str]


def _name_of(block: BlockLike) -> str:
    if isinstance(block, BlockState):
        return block.name
    return base_name(block)


def is_air(block: BlockLike) -> bool:
    return _name_of(block) in AIR_BLOCKS


def is_default_passable(name: str) -> bool:
    if name in AIR_BLOCKS or name in PASSABLE_BLOCKS:
        return True
    if name.endswith(PASSABLE_SUFFIXES):
        return True
    # Flowers and glass variants from other namespaces.
    local = name.split(":", 1)[-1]
    return local.endswith("glass") or local.endswith("flower")


class BlockClassifier:
    """Maps block identity to flood passability.

    Unknown identifiers are SOLID. ``extra_passable`` extends the built-in table
    (marker blocks, or anything the caller knows to be see-through).
    """

    def __init__(self, extra_passable: Iterable[str] = (), *, defaults: bool = True) -> None:
        self.defaults = defaults
        self.extra_passable = frozenset(base_name(str(b).strip()) for b in extra_passable if str(b).strip())
        self._cache: Dict[str, Passability] = {}

    def classify(self, block: BlockLike) -> Passability:
        name = _name_of(block)
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        if name in AIR_BLOCKS or name in self.extra_passable:
            result = Passability.PASSABLE
        elif self.defaults and is_default_passable(name):
            result = Passability.PASSABLE
        else:
            result = Passability.SOLID
        self._cache[name] = result
        return result

    def is_solid(self, block: BlockLike) -> bool:
        return self.classify(block) is Passability.SOLID

    def is_passable(self, block: BlockLike) -> bool:
        return self.classify(block) is Passability.PASSABLE

    def with_passable(self, *identifiers: str) -> "BlockClassifier":
        return BlockClassifier((*self.extra_passable, *identifiers), defaults=self.defaults)
