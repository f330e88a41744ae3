from datetime import datetime, timezone

from flask import current_app, flash, redirect, render_template, request, session, url_for, Blueprint
from flask_login import LoginManager, UserMixin, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please log in to access this page."
login_manager.login_message_category = "info"

auth_bp = Blueprint("auth", __name__)


class User(UserMixin):
    def __init__(self, username, role):
        self.username = username
        self.role = role

    def get_id(self):
        return self.username


def _find_account(username):
    wanted = (username or "").strip().lower()
    for account in current_app.config.get("USERS", []):
        if account["username"].lower() == wanted:
            return account
    return None


def authenticate(username, password):
    account = _find_account(username)
    if account is None or not check_password_hash(account["password_hash"], (password or "").strip()):
        return None
    return User(account["username"], account.get("role", "Staff"))


@login_manager.user_loader
def load_user(user_id):
    account = _find_account(user_id)
    if account is None:
        return None
    return User(account["username"], account.get("role", "Staff"))


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        user = authenticate(request.form.get("username"), request.form.get("password"))
        if user is None:
            flash("Invalid username or password", "error")
            return redirect(url_for("auth.login"))
        login_user(user)
        session["login_time"] = datetime.now(timezone.utc).isoformat()
        current_app.logger.info("User %s signed in", user.username)
        return redirect(url_for("views.dashboard"))
    return render_template("login.html")


@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    session.pop("login_time", None)
    session.pop("sheet_api_url", None)
    return redirect(url_for("auth.login"))
