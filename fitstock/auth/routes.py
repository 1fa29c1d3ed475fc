from flask import request, session, jsonify, current_app
from fitstock.auth import auth
from fitstock.auth.models import User


@auth.route('/login', methods=['POST'])
def login():
    """Validate credentials and populate the session."""
    data = request.get_json(silent=True) or request.form
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    if not username or not password:
        return jsonify({'status': 'error', 'message': 'Username and password are required.'}), 400

    user = User.query.filter_by(username=username).first()
    if user is None or not user.check_password(password):
        # Deliberately vague: do not reveal which field was wrong
        current_app.logger.warning(f"Failed login attempt for username: {username}")
        return jsonify({'status': 'error', 'message': 'Invalid username or password.'}), 401

    session.clear()
    session['user_id'] = user.id
    session.permanent  = True             # respect PERMANENT_SESSION_LIFETIME

    current_app.logger.info(f"User {user.username} logged in successfully.")
    return jsonify({'status': 'ok', 'name': user.name})


@auth.route('/logout', methods=['POST'])
def logout():
    """Clear the session, dropping any unsaved cart with it."""
    session.clear()
    return jsonify({'status': 'ok'})
