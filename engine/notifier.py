"""Notification dispatch for finished timers.

Each NotificationRequest is handed to a daemon worker thread that shows
a desktop notification and plays the notification sound. Dispatch is
fire-and-forget: the engine never waits on, retries or observes the
outcome, and every failure is logged and dropped inside the worker.
"""

import logging
import os
import threading
from typing import Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402
from plyer import notification  # noqa: E402

from common.timer import NotificationRequest  # noqa: E402
from engine.engine_config import NotificationConfig  # noqa: E402

logger = logging.getLogger(__name__)

PLAYBACK_POLL_MS = 100


class NotificationError(Exception):
    """Raised inside the worker when the sound cannot be played."""


class NotificationDispatcher:
    """Shows desktop notifications and plays the notification sound."""

    def __init__(self, config: Optional[NotificationConfig] = None):
        """Initialize NotificationDispatcher.

        Args:
            config: What to show and play; defaults to NotificationConfig()
        """
        self.config = config or NotificationConfig()
        # pygame.mixer.music is a single global stream
        self._playback_lock = threading.Lock()
        self.dispatched_count = 0

    def dispatch(self, request: NotificationRequest) -> Optional[threading.Thread]:
        """Hand a notification request to a worker thread.

        Args:
            request: The finished timer

        Returns:
            The started worker thread, or None when notifications are disabled
        """
        if not self.config.enabled:
            logger.debug(f"Notifications disabled, dropping request for {request.timer_id}")
            return None

        worker = threading.Thread(
            target=self._notify,
            args=(request,),
            daemon=True,
            name=f"Notify-{request.timer_id[:8]}",
        )
        worker.start()
        self.dispatched_count += 1
        return worker

    def _notify(self, request: NotificationRequest):
        if self.config.desktop_notification:
            try:
                self.show_desktop_notification(request)
            except Exception as e:
                logger.error(f"Failed to send notification for {request.timer_id}: {e}")

        if self.config.play_sound:
            try:
                self.play_sound()
            except Exception as e:
                logger.error(f"Failed to play notification sound: {e}")

    def show_desktop_notification(self, request: NotificationRequest):
        logger.info(f"Notifying for timer {request.timer_id} {request.timer_name!r}")
        notification.notify(
            title=self.config.summary,
            message=self.config.body,
            app_name=self.config.app_name,
            timeout=self.config.timeout,
        )

    def play_sound(self):
        """Play the notification sound, blocking until playback ends.

        Raises:
            NotificationError: If the sound file is missing or the audio
                device cannot be opened
        """
        sound_file = self.config.sound_file
        if not os.path.isfile(sound_file):
            raise NotificationError(f"Sound file not found: {sound_file}")

        with self._playback_lock:
            try:
                if not pygame.mixer.get_init():
                    pygame.mixer.init()
                pygame.mixer.music.load(sound_file)
                pygame.mixer.music.play()
                while pygame.mixer.music.get_busy():
                    pygame.time.wait(PLAYBACK_POLL_MS)
            except pygame.error as e:
                raise NotificationError(str(e)) from e
