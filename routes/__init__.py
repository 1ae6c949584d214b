"""
Flask blueprints for the workflow tracker.

    bytestore_bp  - remote persistence target: get/put of the database blob
    workflow_bp   - JSON API over the answer store and flow navigator
"""

from flask import Blueprint

# Create blueprints
bytestore_bp = Blueprint('bytestore', __name__)
workflow_bp = Blueprint('workflow', __name__)

# Import routes to register them
from . import bytestore
from . import workflow_api
