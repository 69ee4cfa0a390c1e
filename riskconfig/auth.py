from functools import wraps

from flask import jsonify
from flask_login import LoginManager, current_user

from .models import User, db

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'message': 'Authentication required'}), 401


def permission_required(permission):
    """Reject the request with 403 unless the current user holds ``permission``.

    Must be applied under ``login_required``.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.has_permission(permission):
                return jsonify({'success': False, 'message': 'You are not allowed to do this'}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator
