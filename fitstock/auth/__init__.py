from flask import Blueprint

auth = Blueprint('auth', __name__)

from fitstock.auth import routes  # noqa: F401, E402
from fitstock.auth import models  # noqa: F401, E402: registers User with SQLAlchemy
