from .queue_builder import QueueBuilder

__all__ = ['QueueBuilder']
