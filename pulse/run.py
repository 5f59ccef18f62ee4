import os

from dotenv import load_dotenv

# .env must be loaded before Config reads the environment
load_dotenv()

from pulse import create_app
from pulse.extensions import db
from pulse.routes import register_blueprints

api = create_app()
register_blueprints(api)


def init_db():
    """Create any missing tables (profiles, tasks, executions, relationships, invites)."""
    db.create_all()


with api.app_context():
    init_db()
    api.logger.info("[BOOT] database ready at %s", api.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])

if __name__ == "__main__":
    api.run(debug=True, port=int(os.getenv("PORT", "5000")))
