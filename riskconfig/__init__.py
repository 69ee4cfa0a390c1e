import logging

from flask import Flask

from .auth import login_manager
from .config import Config
from .models import db


def configure_logging(level):
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger(__name__).setLevel(level)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app.config['LOG_LEVEL'])

    db.init_app(app)
    login_manager.init_app(app)

    from .routes import risk_config_bp
    app.register_blueprint(risk_config_bp)

    return app
