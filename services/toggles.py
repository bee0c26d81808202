"""State of boolean user/target relations folded from activate/deactivate events."""

from typing import Dict, Iterable, List, Optional, Tuple

from models import Interaction, InteractionType, Relation, TOGGLE_PAIRS

# event type -> (relation, new active state)
TOGGLE_EVENTS: Dict[InteractionType, Tuple[Relation, bool]] = {}
for _relation, (_on, _off) in TOGGLE_PAIRS.items():
    TOGGLE_EVENTS[_on] = (_relation, True)
    TOGGLE_EVENTS[_off] = (_relation, False)


def chronological_key(interaction: Interaction):
    """Total order over interactions that does not depend on arrival order."""
    return (
        interaction.timestamp,
        interaction.id,
        int(interaction.type),
        interaction.user_key,
        interaction.target_id,
        interaction.content,
        interaction.from_user,
    )


def sort_chronologically(interactions: Iterable[Interaction]) -> List[Interaction]:
    return sorted(interactions, key=chronological_key)


class ToggleLedger:
    """Mapping target -> relation -> user -> active, with membership kept in activation order.

    Users are keyed by their lower-cased address; the membership lists keep the
    address exactly as it appeared on the activating record.
    """

    def __init__(self, relations: Optional[Iterable[Relation]] = None):
        self.relations = set(relations) if relations is not None else set(TOGGLE_PAIRS)
        self._state: Dict[int, Dict[Relation, Dict[str, str]]] = {}

    def apply(self, interaction: Interaction, target_key: Optional[int] = None) -> Optional[bool]:
        """Apply one event; returns the user's state afterwards or None if the type is not a toggle."""
        toggle = TOGGLE_EVENTS.get(interaction.type)
        if toggle is None or toggle[0] not in self.relations:
            return None
        relation, activate = toggle
        target = interaction.target_id if target_key is None else target_key
        members = self._state.setdefault(target, {}).setdefault(relation, {})
        user = interaction.user_key
        if activate:
            if user not in members:
                members[user] = interaction.from_user
        else:
            members.pop(user, None)
        return user in members

    def fold(self, interactions: Iterable[Interaction]) -> "ToggleLedger":
        for interaction in sort_chronologically(interactions):
            self.apply(interaction)
        return self

    def members(self, target: int, relation: Relation) -> List[str]:
        return list(self._state.get(target, {}).get(relation, {}).values())

    def member_keys(self, target: int, relation: Relation) -> List[str]:
        return list(self._state.get(target, {}).get(relation, {}).keys())

    def count(self, target: int, relation: Relation) -> int:
        return len(self._state.get(target, {}).get(relation, {}))

    def is_active(self, target: int, relation: Relation, user: str) -> bool:
        return user.lower() in self._state.get(target, {}).get(relation, {})

    def targets(self) -> List[int]:
        return list(self._state.keys())
