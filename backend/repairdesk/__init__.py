from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///repairdesk.db')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', '10')))

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .routes.iam import iam_bp
    from .routes.customers import cust_bp
    from .routes.repairs import rpr_bp
    from .routes.notifications import ntf_bp
    from .routes.products import prd_bp
    app.register_blueprint(iam_bp, url_prefix='/iam')
    app.register_blueprint(cust_bp, url_prefix='/customers')
    app.register_blueprint(rpr_bp, url_prefix='/repairs')
    app.register_blueprint(ntf_bp, url_prefix='/notifications')
    app.register_blueprint(prd_bp, url_prefix='/products')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    from .errors import ValidationError

    @app.errorhandler(ValidationError)
    def handle_validation(e):  # type: ignore
        SessionLocal.rollback()
        return {
            'error': {
                'status': 400,
                'title': 'Bad Request',
                'detail': str(e),
                'fields': e.errors,
            }
        }, 400

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception; discard whatever the request left pending
        app.logger.exception('Unhandled exception')
        SessionLocal.rollback()
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()
