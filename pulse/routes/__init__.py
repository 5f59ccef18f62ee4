from .profiles import profiles_bp
from .tasks import tasks_bp
from .friends import friends_bp
from .challenges import challenges_bp

def register_blueprints(app):
    app.register_blueprint(profiles_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(friends_bp)
    app.register_blueprint(challenges_bp)
