# Overview: Flask API route for the caller's navigation menu.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..services import navigation_service


navigation_bp = Blueprint("navigation", __name__, url_prefix="/api/navigation")


@navigation_bp.get("")
@require_auth
def navigation_route():
    return jsonify({"items": navigation_service.navigation_for(g.profile)}), 200
