from .step_parser import StepParser
from .leech import LeechDetector
from .item_status import get_item_status

__all__ = ['StepParser', 'LeechDetector', 'get_item_status']
