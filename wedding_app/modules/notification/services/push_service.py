"""
Push Transport.

Stores Web Push subscriptions and delivers payloads to them with pywebpush.
Delivery is best-effort: each subscription is attempted independently, and a
subscription the push service reports as gone (404/410) is deleted.
"""
import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import requests
from flask import current_app
from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError

from ....extensions import db
from ....utils.db_utils import dialect_insert
from ..models import PushSubscription
from ..schemas import PushPayload, PushResult

# Push service answers meaning the endpoint will never accept messages again
GONE_STATUS_CODES = (404, 410)


@dataclass
class DeliveryOutcome:
    endpoint: str
    delivered: bool
    gone: bool = False
    error: Optional[str] = None


class PushService:

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get('VAPID_PUBLIC_KEY') and current_app.config.get('VAPID_PRIVATE_KEY'))

    @staticmethod
    def get_public_key() -> Optional[str]:
        """Public VAPID key for browser subscriptions; None when push is not configured."""
        if not PushService.is_configured():
            return None
        return current_app.config['VAPID_PUBLIC_KEY']

    @staticmethod
    def subscribe(user_id: int, subscription: Dict, user_agent: str = None) -> PushSubscription:
        """
        Upsert keyed by (user_id, endpoint); a re-subscribe refreshes the keys.

        ON CONFLICT DO UPDATE, so two browser tabs re-subscribing at once
        both succeed and leave one row.
        """
        endpoint = subscription['endpoint']
        keys = subscription.get('keys') or {}
        values = {
            'p256dh_key': keys['p256dh'],
            'auth_key': keys['auth'],
            'user_agent': user_agent,
        }

        try:
            insert = dialect_insert(PushSubscription)
            if insert is not None:
                stmt = insert.values(user_id=user_id, endpoint=endpoint, **values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[PushSubscription.user_id, PushSubscription.endpoint],
                    set_=values,
                )
                db.session.execute(stmt)
            else:
                sub = PushSubscription.query.filter_by(user_id=user_id, endpoint=endpoint).first()
                if sub is None:
                    sub = PushSubscription(user_id=user_id, endpoint=endpoint)
                    db.session.add(sub)
                for name, value in values.items():
                    setattr(sub, name, value)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Push] Could not save subscription for user {user_id}")
            raise

        current_app.logger.info(f"[Push] Subscription saved for user {user_id}")
        return PushSubscription.query.filter_by(user_id=user_id, endpoint=endpoint) \
            .populate_existing().one()

    @staticmethod
    def unsubscribe(user_id: int, endpoint: str) -> bool:
        """Delete the subscription; True when a row was removed. Absent is not an error."""
        try:
            removed = PushSubscription.query.filter_by(user_id=user_id, endpoint=endpoint).delete()
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Push] Could not remove subscription for user {user_id}")
            raise
        return bool(removed)

    @staticmethod
    def get_subscriptions(user_id: int) -> List[PushSubscription]:
        return PushSubscription.query.filter_by(user_id=user_id).all()

    @staticmethod
    def send(user_id: int, payload: PushPayload) -> PushResult:
        """
        Deliver ``payload`` to every subscription of the user.

        Returns the counts; success + failed equals the number of
        subscriptions attempted. Without VAPID keys this is a no-op.
        """
        if not PushService.is_configured():
            current_app.logger.debug("[Push] VAPID keys not configured, skipping push notification")
            return PushResult()

        subscriptions = PushService.get_subscriptions(user_id)
        if not subscriptions:
            return PushResult()

        config = current_app.config
        body = json.dumps(
            payload.to_dict(config.get('PUSH_DEFAULT_ICON'), config.get('PUSH_DEFAULT_BADGE')),
            ensure_ascii=False,
        )
        targets = [sub.to_subscription_info() for sub in subscriptions]
        options = {
            'private_key': config['VAPID_PRIVATE_KEY'],
            'subject': config.get('VAPID_SUBJECT'),
            'ttl': config.get('PUSH_TTL_SECONDS', 86400),
            'timeout': config.get('PUSH_TIMEOUT_SECONDS', 10),
        }

        # Network calls in workers; counting and pruning stay on this thread
        workers = max(1, min(len(targets), config.get('PUSH_FANOUT_WORKERS', 4)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='push-fanout') as executor:
            outcomes = list(executor.map(lambda info: _deliver_one(info, body, **options), targets))

        result = PushResult()
        gone_endpoints = []
        for outcome in outcomes:
            if outcome.delivered:
                result.success_count += 1
                continue
            result.failed_count += 1
            current_app.logger.warning(
                f"[Push] Delivery failed for user {user_id} ({outcome.endpoint[:60]}): {outcome.error}"
            )
            if outcome.gone:
                gone_endpoints.append(outcome.endpoint)

        if gone_endpoints:
            result.removed_count = PushService._prune(user_id, gone_endpoints)

        if result.failed_count:
            current_app.logger.info(
                f"[Push] User {user_id}: {result.success_count} delivered, "
                f"{result.failed_count} failed, {result.removed_count} removed"
            )
        return result

    @staticmethod
    def send_bulk(user_ids: Iterable[int], payload: PushPayload) -> PushResult:
        total = PushResult()
        for user_id in user_ids:
            total = total + PushService.send(user_id, payload)
        return total

    @staticmethod
    def _prune(user_id: int, endpoints: List[str]) -> int:
        try:
            removed = PushSubscription.query.filter(
                PushSubscription.user_id == user_id,
                PushSubscription.endpoint.in_(endpoints),
            ).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Push] Could not prune expired subscriptions for user {user_id}")
            return 0
        current_app.logger.info(f"[Push] Removed {removed} expired subscription(s) for user {user_id}")
        return removed


def _deliver_one(subscription_info: Dict, body: str, private_key: str, subject: str,
                 ttl: int, timeout: float) -> DeliveryOutcome:
    """Send to a single subscription. Never raises; runs on a worker thread."""
    endpoint = subscription_info['endpoint']
    try:
        webpush(
            subscription_info=subscription_info,
            data=body,
            vapid_private_key=private_key,
            # pywebpush adds aud/exp to the claims dict, so each call gets its own
            vapid_claims={'sub': subject},
            ttl=ttl,
            timeout=timeout,
        )
        return DeliveryOutcome(endpoint=endpoint, delivered=True)
    except WebPushException as exc:
        status_code = getattr(exc.response, 'status_code', None)
        return DeliveryOutcome(
            endpoint=endpoint,
            delivered=False,
            gone=status_code in GONE_STATUS_CODES,
            error=f"HTTP {status_code}: {exc}" if status_code else str(exc),
        )
    except requests.Timeout as exc:
        return DeliveryOutcome(endpoint=endpoint, delivered=False, error=f"timeout: {exc}")
    except Exception as exc:
        return DeliveryOutcome(endpoint=endpoint, delivered=False, error=repr(exc))
