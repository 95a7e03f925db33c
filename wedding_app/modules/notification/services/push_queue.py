"""
Push handoff.

The dispatcher hands push delivery to this queue so a slow push provider
never adds latency to the request that created the notification. Jobs run
on a small background executor inside the application context. With
PUSH_DELIVERY_MODE = 'sync' (tests, one-off scripts) jobs run inline.
"""
import atexit
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from flask import Flask, current_app

from ..schemas import PushPayload, PushResult
from .push_service import PushService


class PushDeliveryQueue:

    def __init__(self, app: Flask = None):
        self._executor: Optional[ThreadPoolExecutor] = None
        self._mode = 'async'
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self._mode = app.config.get('PUSH_DELIVERY_MODE', 'async')
        if self._mode == 'async' and self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=app.config.get('PUSH_QUEUE_WORKERS', 2),
                thread_name_prefix='push-queue',
            )
            atexit.register(self.shutdown)
        app.extensions['push_queue'] = self

    def submit(self, user_id: int, payload: PushPayload) -> Optional[Future]:
        """Schedule delivery; returns the Future in async mode, None when run inline."""
        if self._mode != 'async' or self._executor is None:
            _send_logged(current_app, user_id, payload)
            return None
        app = current_app._get_current_object()
        return self._executor.submit(self._run, app, user_id, payload)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    @staticmethod
    def _run(app: Flask, user_id: int, payload: PushPayload) -> PushResult:
        with app.app_context():
            return _send_logged(app, user_id, payload)


def _send_logged(app: Flask, user_id: int, payload: PushPayload) -> PushResult:
    try:
        return PushService.send(user_id, payload)
    except Exception as exc:
        app.logger.error(f"[Push] Delivery job for user {user_id} failed: {exc}", exc_info=True)
        return PushResult()


push_queue = PushDeliveryQueue()
