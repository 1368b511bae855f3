"""
Central Signal Registry for study-session events.

The scheduling engines are pure and never send signals; only the session
service (the orchestration layer) does, after a rating has been applied.

Usage:
    # Publisher (sender)
    from prepigo_srs.core.signals import card_rated
    card_rated.send(None, item_id='c1', rating=3, review_log=log)

    # Subscriber (receiver)
    @card_rated.connect
    def on_card_rated(sender, **kwargs):
        ...
"""
from blinker import Namespace

session_signals = Namespace()

# Signal: Fired after an item has been rated inside a session
# Payload: item_id, rating, review_log, outcome
card_rated = session_signals.signal('card_rated')

# Signal: Fired when a rating pushes an item over the leech threshold
# Payload: item_id, lapses, action ('tag' | 'suspend')
leech_detected = session_signals.signal('leech_detected')

# Signal: Fired when siblings of a rated item are buried for the session
# Payload: item_id, note_id, buried_ids
siblings_buried = session_signals.signal('siblings_buried')

# Signal: Fired when a session queue has been built
# Payload: queue_size, new_count, learning_count, review_count
queue_built = session_signals.signal('queue_built')

# Signal: Fired when the cursor moves past the last queued item
# Payload: queue_size, buried_count
session_completed = session_signals.signal('session_completed')
