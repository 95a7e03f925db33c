import math

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from ...core.error_handlers import NotFoundError, ServiceUnavailableError, ValidationError, success_response
from ...utils.time_utils import utcnow
from . import notification_api_bp, push_api_bp
from .schemas import NotificationType
from .services import NotificationDispatcher, NotificationStore, PreferenceService, PushService


def _page_args():
    page = request.args.get('page', 1, type=int) or 1
    limit = request.args.get('limit', current_app.config.get('NOTIFICATIONS_PER_PAGE', 20), type=int) or 1
    max_limit = current_app.config.get('NOTIFICATIONS_MAX_PER_PAGE', 100)
    return max(page, 1), min(max(limit, 1), max_limit)


# ---------------------------------------------------------------- feed

@notification_api_bp.route('/', methods=['GET'])
@login_required
def api_get_notifications():
    page, limit = _page_args()
    notifs, total = NotificationStore.get_user_notifications(current_user.user_id, page, limit)

    return jsonify(success_response({
        'notifications': [n.to_dict() for n in notifs],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
        },
    }))


@notification_api_bp.route('/unread-count', methods=['GET'])
@login_required
def api_unread_count():
    count = NotificationStore.get_unread_count(current_user.user_id)
    return jsonify(success_response({'count': count}))


@notification_api_bp.route('/read-all', methods=['PUT'])
@login_required
def api_mark_all_read():
    updated = NotificationStore.mark_all_as_read(current_user.user_id)
    return jsonify(success_response({'updated': updated}, message='모든 알림을 읽음 처리했습니다'))


@notification_api_bp.route('/<notification_id>/read', methods=['PUT'])
@login_required
def api_mark_read(notification_id):
    notif = NotificationStore.mark_as_read(notification_id, current_user.user_id)
    if notif is None:
        raise NotFoundError('알림을 찾을 수 없습니다', resource='notification')
    return jsonify(success_response(notif.to_dict()))


@notification_api_bp.route('/<notification_id>', methods=['DELETE'])
@login_required
def api_delete_notification(notification_id):
    if not NotificationStore.delete(notification_id, current_user.user_id):
        raise NotFoundError('알림을 찾을 수 없습니다', resource='notification')
    return jsonify(success_response(message='알림이 삭제되었습니다'))


@notification_api_bp.route('/', methods=['DELETE'])
@login_required
def api_clear_notifications():
    deleted = NotificationStore.delete_all(current_user.user_id)
    return jsonify(success_response({'deleted': deleted}, message='모든 알림이 삭제되었습니다'))


# ---------------------------------------------------------------- preferences

@notification_api_bp.route('/preferences', methods=['GET'])
@login_required
def api_get_preferences():
    pref = PreferenceService.get_or_create(current_user.user_id)
    return jsonify(success_response(pref.to_dict()))


@notification_api_bp.route('/preferences', methods=['PUT'])
@login_required
def api_update_preferences():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('JSON object body required')
    pref = PreferenceService.update(current_user.user_id, data)
    return jsonify(success_response(pref.to_dict()))


@notification_api_bp.route('/test', methods=['POST'])
@login_required
def api_create_test_notification():
    data = request.get_json(silent=True) or {}
    try:
        notification_type = NotificationType(data.get('type', NotificationType.ANNOUNCEMENT.value))
    except ValueError:
        raise ValidationError('Unknown notification type', errors={'type': data.get('type')})

    notif = NotificationDispatcher.create(
        current_user.user_id,
        notification_type,
        data.get('title') or '테스트 알림',
        data.get('message') or '이것은 테스트 알림입니다. 알림 기능이 정상적으로 작동합니다!',
        {'test': True, 'timestamp': utcnow().isoformat()},
        '/',
    )
    if notif is None:
        return jsonify(success_response(message='알림 설정에 의해 생성되지 않았습니다'))
    return jsonify(success_response(notif.to_dict(), message='테스트 알림이 생성되었습니다')), 201


# ---------------------------------------------------------------- push

@push_api_bp.route('/vapid-public-key', methods=['GET'])
def api_vapid_public_key():
    public_key = PushService.get_public_key()
    if not public_key:
        raise ServiceUnavailableError('푸시 알림 서비스가 설정되지 않았습니다', details={'publicKey': None})
    return jsonify(success_response({'publicKey': public_key}))


@push_api_bp.route('/subscribe', methods=['POST'])
@login_required
def api_subscribe():
    data = request.get_json(silent=True) or {}
    subscription = data.get('subscription')
    keys = subscription.get('keys') if isinstance(subscription, dict) else None
    if (not isinstance(subscription, dict) or not subscription.get('endpoint')
            or not isinstance(keys, dict) or not keys.get('p256dh') or not keys.get('auth')):
        raise ValidationError('유효하지 않은 구독 정보입니다')

    PushService.subscribe(current_user.user_id, subscription, request.headers.get('User-Agent'))
    return jsonify(success_response(message='푸시 알림이 등록되었습니다'))


@push_api_bp.route('/unsubscribe', methods=['DELETE'])
@login_required
def api_unsubscribe():
    data = request.get_json(silent=True) or {}
    endpoint = data.get('endpoint')
    if not endpoint:
        raise ValidationError('endpoint가 필요합니다')

    PushService.unsubscribe(current_user.user_id, endpoint)
    return jsonify(success_response(message='푸시 알림이 해제되었습니다'))
