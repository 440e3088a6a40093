"""Animations, their channels and keyframe samplers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .buffer import Accessor
from .property import Property
from .scene import Node
from .store import Graph
from .weights import NamedWeight

__all__ = [
    "AnimationEdge",
    "AnimationWeight",
    "Animation",
    "AnimationChannelEdge",
    "AnimationChannelWeight",
    "AnimationChannel",
    "AnimationSamplerEdge",
    "AnimationSamplerWeight",
    "AnimationSampler",
]


class AnimationSamplerEdge(Enum):
    INPUT = "animationSampler/input"
    OUTPUT = "animationSampler/output"


@dataclass(slots=True)
class AnimationSamplerWeight(NamedWeight):
    interpolation: str = "LINEAR"


class AnimationSampler(Property):
    weight_type = AnimationSamplerWeight

    def input(self, graph: Graph) -> Optional[Accessor]:
        return self.find_edge_target(graph, AnimationSamplerEdge.INPUT, Accessor)

    def set_input(self, graph: Graph, accessor: Optional[Accessor]) -> None:
        self.set_edge_target(graph, AnimationSamplerEdge.INPUT, accessor)

    def output(self, graph: Graph) -> Optional[Accessor]:
        return self.find_edge_target(
            graph, AnimationSamplerEdge.OUTPUT, Accessor
        )

    def set_output(self, graph: Graph, accessor: Optional[Accessor]) -> None:
        self.set_edge_target(graph, AnimationSamplerEdge.OUTPUT, accessor)


class AnimationChannelEdge(Enum):
    SAMPLER = "animationChannel/sampler"
    TARGET = "animationChannel/target"


@dataclass(slots=True)
class AnimationChannelWeight(NamedWeight):
    # translation | rotation | scale | weights
    path: str = "translation"


class AnimationChannel(Property):
    weight_type = AnimationChannelWeight

    def sampler(self, graph: Graph) -> Optional[AnimationSampler]:
        return self.find_edge_target(
            graph, AnimationChannelEdge.SAMPLER, AnimationSampler
        )

    def set_sampler(
        self, graph: Graph, sampler: Optional[AnimationSampler]
    ) -> None:
        self.set_edge_target(graph, AnimationChannelEdge.SAMPLER, sampler)

    def target(self, graph: Graph) -> Optional[Node]:
        return self.find_edge_target(graph, AnimationChannelEdge.TARGET, Node)

    def set_target(self, graph: Graph, node: Optional[Node]) -> None:
        self.set_edge_target(graph, AnimationChannelEdge.TARGET, node)


class AnimationEdge(Enum):
    CHANNEL = "animation/channel"


@dataclass(slots=True)
class AnimationWeight(NamedWeight):
    pass


class Animation(Property):
    weight_type = AnimationWeight

    def channels(self, graph: Graph) -> List[AnimationChannel]:
        return self.edge_targets(graph, AnimationEdge.CHANNEL, AnimationChannel)

    def create_channel(self, graph: Graph) -> AnimationChannel:
        channel = AnimationChannel.new(graph)
        self.add_edge_target(graph, AnimationEdge.CHANNEL, channel)
        return channel

    def create_sampler(self, graph: Graph) -> AnimationSampler:
        """Create a sampler; it is exported once a channel references it."""
        return AnimationSampler.new(graph)

    def samplers(self, graph: Graph) -> List[AnimationSampler]:
        """Distinct channel samplers in order of first use."""
        seen: List[AnimationSampler] = []
        for channel in self.channels(graph):
            sampler = channel.sampler(graph)
            if sampler is not None and sampler not in seen:
                seen.append(sampler)
        return seen
