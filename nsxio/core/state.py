'''
Lifecycle of an NSx session.

    CLOSED -> OPENED -> DATA_LOADED <-> SPIKES_LOADED

Any state can go back to CLOSED. A closed session cannot be reopened.
'''

import enum


class SessionState(enum.Enum):
    CLOSED = 'closed'
    OPENED = 'opened'
    DATA_LOADED = 'data loaded'
    SPIKES_LOADED = 'spikes loaded'

    @property
    def is_open(self):
        return self is not SessionState.CLOSED

    @property
    def has_data(self):
        return self in (SessionState.DATA_LOADED, SessionState.SPIKES_LOADED)
