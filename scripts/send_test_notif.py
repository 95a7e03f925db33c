import os
import sys

# Add project root to path
sys.path.append(os.getcwd())

# Deliver push inline so the result is visible before the script exits
os.environ.setdefault('PUSH_DELIVERY_MODE', 'sync')
os.environ.setdefault('SCHEDULER_ENABLED', 'false')

from wedding_app import create_app, db
from wedding_app.models import User
from wedding_app.modules.notification.services import NotificationDispatcher, PushService

app = create_app()

with app.app_context():
    user_id = int(sys.argv[1]) if len(sys.argv) > 1 else None
    user = db.session.get(User, user_id) if user_id else User.query.filter_by(is_admin=False).first()
    if user is None:
        print("No users found in database.")
        sys.exit(1)

    print(f"Sending test notification to User ID: {user.user_id} ({user.name})")
    print(f"Push configured: {PushService.is_configured()}, "
          f"subscriptions: {len(PushService.get_subscriptions(user.user_id))}")

    notif = NotificationDispatcher.create(
        user.user_id,
        'announcement',
        '테스트 알림',
        '이것은 테스트 알림입니다. 알림 기능이 정상적으로 작동합니다!',
        {'test': True},
        '/',
    )
    if notif is None:
        print("Suppressed by the user's notification preferences.")
    else:
        print(f"Notification {notif.id} created.")
