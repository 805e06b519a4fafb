"""
Clone policies.

Fork starts a new lineage: fresh UUID, the cloning agent becomes the
progenitor and the DNA takes the new instance's name. Join enters an
existing lineage: UUID, name and progenitor are kept from the source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .agent import AgentIdentity
from .dna import DNA, Progenitor, new_uuid


@dataclass(frozen=True)
class Fork:
    new_progenitor: Progenitor

    def apply(self, dna: DNA, name: str) -> DNA:
        return dna.model_copy(
            update={
                "uuid": new_uuid(),
                "name": name,
                "progenitor": self.new_progenitor.model_copy(),
            },
            deep=True,
        )


@dataclass(frozen=True)
class Join:
    """The source progenitor is preserved; the cloner is only a participant."""

    def apply(self, dna: DNA, name: str) -> DNA:
        return dna.model_copy(deep=True)


LineagePolicy = Union[Fork, Join]


def fork_for(agent: AgentIdentity) -> Fork:
    return Fork(Progenitor(identity=agent.identity, pub_key=agent.pub_key))
