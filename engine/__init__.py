"""Engine package for oxyclock.

Provides configuration, logging setup, tick scheduling, notification
dispatch and the command loop that drives the timer collection.
"""
