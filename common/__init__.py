"""Timer domain package for oxyclock.

Provides the countdown timer state machine, duration codec, the timer
collection and its JSON persistence.
"""
