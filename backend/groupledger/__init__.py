import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from groupledger.config import Config
from groupledger.errors import LedgerError
from groupledger.extensions import init_store

jwt = JWTManager()

def create_app(config_class=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("groupledger").setLevel(app.config["LOG_LEVEL"])

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    CORS(
        app,
        supports_credentials=True,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}
    )
    # Init extensions
    init_store(app, store)
    jwt.init_app(app)

    # Register blueprints
    from groupledger.groups.routes import groups_bp
    from groupledger.expenses.routes import expenses_bp
    from groupledger.balances.routes import balances_bp
    from groupledger.settlements.routes import settlements_bp
    from groupledger.users.routes import users_bp

    app.register_blueprint(groups_bp, url_prefix='/api/v1/groups')
    app.register_blueprint(expenses_bp, url_prefix='/api/v1/expenses')
    app.register_blueprint(balances_bp, url_prefix='/api/v1/balances')
    app.register_blueprint(settlements_bp, url_prefix='/api/v1/settlements')
    app.register_blueprint(users_bp, url_prefix='/api/v1/users')

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        return jsonify(error.to_dict()), error.status_code

    return app
