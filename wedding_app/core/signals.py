"""
Central Signal Registry for Event-Driven Notifications.

Domain modules (expenses, venues, checklist, schedule, admin announcements)
publish these signals after a successful mutation; the notification module
subscribes in its ``events.py``. Publishers never import notification code.

Usage:
    # Publisher (sender)
    from wedding_app.core.signals import couple_activity_recorded
    couple_activity_recorded.send(None, user_id=1, couple_id=7,
                                  activity_type='venue', action='add',
                                  item_name='그랜드홀')

    # Subscriber (receiver) - in module's events.py
    @couple_activity_recorded.connect
    def on_couple_activity(sender, **kwargs):
        ...
"""
from blinker import Namespace

domain_signals = Namespace()

# Signal: Fired after an expense is added, edited or removed.
# Payload: couple_id, previous_total, current_total, total_budget
expense_recorded = domain_signals.signal('expense_recorded')

# Signal: Fired after a partner-visible change (venue, expense, checklist, schedule).
# Payload: user_id (actor), couple_id, activity_type, action ('add'|'update'|'delete'),
#          item_name (optional)
couple_activity_recorded = domain_signals.signal('couple_activity_recorded')

# Signal: Fired when the checklist owner determines an item is due or overdue.
# Payload: user_id, item_id, item_title, due_date, is_overdue
checklist_item_due = domain_signals.signal('checklist_item_due')

admin_signals = Namespace()

# Signal: Fired when an admin publishes an announcement.
# Payload: announcement_id, title, content, is_important
announcement_published = admin_signals.signal('announcement_published')
