"""
Flask Application Factory.

Creates the Flask application and the single Storage instance it uses.
"""

import os
from typing import Optional

from flask import Flask

from noreply_pro.api import api_bp
from noreply_pro.api.routes import EXTENSION_KEY
from noreply_pro.config import settings
from noreply_pro.infrastructure.http import DraftWriterClient
from noreply_pro.infrastructure.logging import log_request_context, logger
from noreply_pro.services import DraftingService, Storage


def create_app(
    config: Optional[dict] = None,
    storage: Optional[Storage] = None,
    draft_writer: Optional[DraftWriterClient] = None,
) -> Flask:
    """
    Create and configure the Flask application.
    
    Args:
        config: Optional configuration dictionary.
        storage: Storage to serve; built from settings when omitted.
        draft_writer: Drafting client; built from settings when omitted.
        
    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    
    app.json.sort_keys = False
    
    if config:
        app.config.update(config)
    
    storage = storage or Storage.from_settings(settings)
    draft_writer = draft_writer or DraftWriterClient()
    
    app.extensions[EXTENSION_KEY] = {
        "storage": storage,
        "drafting": DraftingService(draft_writer, storage.follow_ups, storage.templates),
    }
    
    log_request_context(app)
    
    app.register_blueprint(api_bp)
    
    logger.info(
        "Application initialized",
        extra={"extra_fields": {
            "environment": os.environ.get("ENVIRONMENT", "development"),
            "substrate": type(storage.substrate).__name__,
            "drafting_configured": draft_writer.is_configured,
        }}
    )
    
    return app


if __name__ == "__main__":
    create_app().run(
        host="127.0.0.1",
        port=settings.port,
        debug=settings.debug,
    )
