# Settings module: EffectiveSettings and per-deck override resolution.
from .schemas import (
    EffectiveSettings, FsrsParameters, DeckNode, SchedulerType, ItemKind, LeechAction,
    NewCardGatherOrder, NewCardSortOrder, ReviewSortOrder, InterleaveOrder,
)
from .services.settings_service import SettingsResolver

__all__ = [
    'EffectiveSettings', 'FsrsParameters', 'DeckNode', 'SchedulerType', 'ItemKind',
    'LeechAction', 'NewCardGatherOrder', 'NewCardSortOrder', 'ReviewSortOrder',
    'InterleaveOrder', 'SettingsResolver',
]
