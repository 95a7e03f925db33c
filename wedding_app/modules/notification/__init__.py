from flask import Blueprint

notification_api_bp = Blueprint('notification_api', __name__)
push_api_bp = Blueprint('push_api', __name__)

from . import routes  # noqa: E402,F401
from . import events  # noqa: E402,F401
