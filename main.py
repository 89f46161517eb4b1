import logging
from flask import Flask

import config
from models import db

# Configure logging
logging.basicConfig(level=config.get_log_level(),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(overrides=None):
    """
    Create the Flask app with the policy blueprint and audit storage.

    Args:
        overrides: Optional dict of Flask config values (tests use this to
            inject PHI_POLICY_CLOCK)
    """
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = config.get_database_url()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['PHI_POLICY_CLOCK'] = None
    if overrides:
        app.config.update(overrides)

    logger.debug(f"Using database URL: {app.config['SQLALCHEMY_DATABASE_URI']}")
    db.init_app(app)

    with app.app_context():
        # Imported for its side effect: registers the audit table with db.metadata
        from phi_policy.models import AccessAuditRecord
        db.create_all()
        logger.info('Audit tables created successfully')

    from phi_policy.routes import policy_blueprint
    app.register_blueprint(policy_blueprint)
    return app


app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000)
