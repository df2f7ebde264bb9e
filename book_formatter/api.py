"""
API Routes
"""
from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from book_formatter.errors import ErrorKind, PersistenceError

api_bp = Blueprint('api', __name__)


def get_pipeline():
    return current_app.extensions["book_pipeline"]


@api_bp.route("/process-book", methods=["POST"])
def process_book():
    upload = request.files.get("file")
    template_name = request.form.get("templateName")
    current_app.logger.info('Received template name request: "%s"', template_name)

    result = get_pipeline().process(upload, template_name)
    current_app.logger.info("API request finished (success=%s)", result.success)
    return jsonify(result.to_dict()), (200 if result.success else 500)


@api_bp.errorhandler(RequestEntityTooLarge)
def request_too_large(error):
    limit_mb = current_app.config["MAX_UPLOAD_BYTES"] // (1024 * 1024)
    return jsonify({
        "success": False,
        "message": f"Processing failed: File size exceeds the {limit_mb}MB limit.",
        "bookId": None,
        "errorKind": ErrorKind.VALIDATION.value,
    }), 500


@api_bp.route("/books/<int:book_id>", methods=["GET"])
def book_status(book_id):
    try:
        book = get_pipeline().records.get(book_id)
    except PersistenceError as exc:
        current_app.logger.error("Book lookup failed: %s", exc.message)
        return jsonify({"success": False, "message": exc.message, "bookId": book_id}), 500
    if book is None:
        return jsonify({"success": False, "message": "Unknown book id", "bookId": book_id}), 404
    return jsonify({"success": True, "book": book.to_dict()}), 200


@api_bp.route("/templates", methods=["GET"])
def list_templates():
    templates = get_pipeline().templates
    return jsonify({"templates": templates.options(), "default": templates.default}), 200
