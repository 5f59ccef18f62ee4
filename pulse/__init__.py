from flask import Flask
from .config import Config
from .extensions import db


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # [FRIENDS] / [CHALLENGE] / [ANALYTICS] lines go through app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)

    return app
