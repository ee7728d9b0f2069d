import logging
from os import getenv
from flask import Flask


def create_app(config=None):
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder='static',
        template_folder='templates',
    )

    app.config.from_object({
        'development': 'crednet.config.development.Development',
        'testing': 'crednet.config.testing.Testing',
        'production': 'crednet.config.production.Production',
    }[getenv('CREDNET_APP_ENV', default='development')])

    app.config.from_pyfile('config.py', silent=True)

    if config:
        app.config.from_mapping(config)

    logging.getLogger('crednet_oauth2').setLevel(
        app.config.get('OAUTH2_PROVIDER_LOG_LEVEL', 'INFO')
    )

    from crednet.oauth2.ext import oauth2
    oauth2.init_app(app)

    from crednet.models.ext import db, migrate
    db.init_app(app)
    migrate.init_app(app, db)

    from crednet.routes.main import bp as main_blueprint
    app.register_blueprint(main_blueprint)

    from crednet.routes.oauth import bp as oauth_blueprint
    app.register_blueprint(oauth_blueprint)

    from crednet.commands import oauth_cli
    app.cli.add_command(oauth_cli)

    return app
