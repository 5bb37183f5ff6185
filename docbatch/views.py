"""
UI Blueprint - upload page
"""
from flask import Blueprint, current_app, render_template

from docbatch import APP_VERSION
from docbatch.models import BatchLimits

views_bp = Blueprint('views', __name__)


@views_bp.route('/')
def index():
    limits = BatchLimits.from_config(current_app.config)
    return render_template(
        "index.html",
        version=APP_VERSION,
        limits=limits,
        max_file_mb=limits.max_file_size // (1024 * 1024),
        max_total_mb=limits.max_total_size // (1024 * 1024),
    )
