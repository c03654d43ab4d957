"""
E-Class report export service
Main Flask application entry point
"""

import logging

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect
from config import Config


def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Initialize extensions with app
    CSRFProtect(app)

    # Register blueprints
    from routes.reports import reports_bp

    app.register_blueprint(reports_bp, url_prefix='/reports')

    @app.route('/')
    def index():
        return jsonify({'success': True, 'service': 'E-Class report export'})

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8000, debug=True, use_reloader=False)
