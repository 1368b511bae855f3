from .bury_manager import BuryManager
from .filters import recently_failed_item_ids

__all__ = ['BuryManager', 'recently_failed_item_ids']
