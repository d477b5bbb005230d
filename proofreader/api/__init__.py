"""
API Module
==========
Flask API routes and blueprints.
"""
from proofreader.api.routes import (
    create_segments_blueprint,
    create_actions_blueprint,
    create_settings_blueprint,
    create_health_blueprint,
    create_logs_blueprint
)

__all__ = [
    'create_segments_blueprint',
    'create_actions_blueprint',
    'create_settings_blueprint',
    'create_health_blueprint',
    'create_logs_blueprint'
]
