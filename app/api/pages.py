"""
Page Routes Blueprint

Serves the bundled web frontend from WEB_PATH and answers unknown /api
paths with a not-found envelope.
"""

import os
from flask import Blueprint, current_app, send_from_directory, abort

from app.utils.response import NotFoundError

# Create blueprint
pages_bp = Blueprint('pages', __name__)

API_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH']


def get_web_root():
    """Absolute path of the frontend folder."""
    web_path = current_app.config.get('WEB_PATH', 'web')
    if os.path.isabs(web_path):
        return web_path
    return os.path.join(current_app.root_path, web_path)


@pages_bp.route('/api/<path:path>', methods=API_METHODS)
def unknown_api(path):
    raise NotFoundError(f"接口不存在: /api/{path}")


@pages_bp.route('/')
def index():
    """Frontend entry page"""
    if not current_app.config.get('SERVE_STATIC', True):
        abort(404)
    return send_from_directory(get_web_root(), 'index.html')


@pages_bp.route('/<path:path>')
def static_files(path):
    """Serve a frontend file, falling back to index.html for client-side routes"""
    if not current_app.config.get('SERVE_STATIC', True):
        abort(404)
    web_root = get_web_root()
    if os.path.isfile(os.path.join(web_root, path)):
        return send_from_directory(web_root, path)
    return send_from_directory(web_root, 'index.html')
