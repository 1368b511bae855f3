"""
Settings Resolver Service

Resolves the effective scheduling settings for a deck or question bank by
walking its ancestor chain and picking the nearest node with an override.
"""

import logging
from typing import List, Optional, Tuple

from ..schemas import DeckNode, EffectiveSettings

logger = logging.getLogger(__name__)

GLOBAL_SOURCE_NAME = 'Global'


class SettingsResolver:
    """Pure resolver for per-deck settings overrides. No I/O."""

    @staticmethod
    def find_with_ancestors(
        decks: List[DeckNode],
        deck_id: str,
        ancestors: Optional[List[DeckNode]] = None
    ) -> Optional[Tuple[DeckNode, List[DeckNode]]]:
        """
        Depth-first search for a node in the hierarchy.

        Returns:
            (node, ancestors) where ancestors runs from the root down to the
            node's parent, or None if the id is not in the tree.
        """
        ancestors = ancestors or []
        for deck in decks:
            if deck.id == deck_id:
                return deck, ancestors
            if deck.children:
                found = SettingsResolver.find_with_ancestors(deck.children, deck_id, ancestors + [deck])
                if found:
                    return found
        return None

    @staticmethod
    def resolve_with_source(
        decks: List[DeckNode],
        deck_id: Optional[str],
        global_settings: EffectiveSettings
    ) -> Tuple[EffectiveSettings, str]:
        """Return (settings, source_name); source_name is the overriding deck's name or 'Global'."""
        if deck_id is None:
            return global_settings, GLOBAL_SOURCE_NAME

        result = SettingsResolver.find_with_ancestors(decks, deck_id)
        if not result:
            logger.debug(f"[SETTINGS] Deck '{deck_id}' not found, using global settings")
            return global_settings, GLOBAL_SOURCE_NAME

        deck, ancestors = result
        for node in reversed(ancestors + [deck]):
            if node.has_custom_settings and node.settings is not None:
                return node.settings, node.name

        return global_settings, GLOBAL_SOURCE_NAME

    @staticmethod
    def resolve(
        decks: List[DeckNode],
        deck_id: Optional[str],
        global_settings: EffectiveSettings
    ) -> EffectiveSettings:
        return SettingsResolver.resolve_with_source(decks, deck_id, global_settings)[0]
