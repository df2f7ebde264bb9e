"""
Book Formatter Application Factory
"""
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from book_formatter.config import config

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_name='default', overrides=None):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("book_formatter").setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from book_formatter.pipeline import build_pipeline
    app.extensions["book_pipeline"] = build_pipeline(app.config)

    # Register blueprints
    from book_formatter.api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db_status = "ok"
        except Exception as e:
            db_status = f"error: {e}"

        return jsonify({
            "status": "ok" if db_status == "ok" else "degraded",
            "version": app.config["APP_VERSION"],
            "database": db_status,
            "renderer": app.config["RENDERER_ENVIRONMENT"],
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config["APP_VERSION"],
            "build_time": app.config["BUILD_TIME"],
            "git_commit": app.config["GIT_COMMIT"],
            "templates": sorted(app.config["ALLOWED_TEMPLATES"]),
        })

    # Only create tables if they don't exist (safe for existing DB)
    with app.app_context():
        from sqlalchemy import inspect
        from book_formatter import models  # noqa: F401

        inspector = inspect(db.engine)
        if 'books' not in inspector.get_table_names():
            app.logger.info('No books table found, creating...')
            db.create_all()

    return app
