from .sm2_engine import Sm2Engine
from .fsrs_engine import FsrsEngine
from .processor import RatingProcessor

__all__ = ['Sm2Engine', 'FsrsEngine', 'RatingProcessor']
