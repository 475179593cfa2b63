"""
Flask API Routes.

Defines the HTTP endpoints the dashboard uses to read and write the
local store.
"""

from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, request

from noreply_pro.api.validation import (
    DraftPayload,
    FollowUpPayload,
    PurgeRequest,
    RulePayload,
    TemplatePayload,
    parse_payload,
)
from noreply_pro.core.exceptions import (
    BusinessError,
    ConfigurationError,
    DraftGenerationError,
    PersistenceUnavailableError,
)
from noreply_pro.infrastructure.logging import get_logger
from noreply_pro.services import CollectionService, DraftingService, Storage


logger = get_logger(__name__)


api_bp = Blueprint("api", __name__)

EXTENSION_KEY = "noreply_pro"


def _storage() -> Storage:
    return current_app.extensions[EXTENSION_KEY]["storage"]


def _drafting() -> DraftingService:
    return current_app.extensions[EXTENSION_KEY]["drafting"]


def _json_body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _error_response(
    message: str,
    status_code: int,
    error_type: str = "error",
) -> Tuple[Dict[str, Any], int]:
    """Create standardized error response."""
    return {
        "success": False,
        "error": message,
        "error_type": error_type,
    }, status_code


def _success_response(
    data: Dict[str, Any],
    status_code: int = 200,
) -> Tuple[Dict[str, Any], int]:
    """Create standardized success response."""
    return {
        "success": True,
        **data,
    }, status_code


def _list(service: CollectionService, name: str) -> Tuple[Dict[str, Any], int]:
    items = service.list()
    return _success_response({
        name: [item.to_record() for item in items],
        "count": len(items),
    })


def _save(service: CollectionService, entity, created: bool) -> Tuple[Dict[str, Any], int]:
    stored = service.upsert(entity)
    return _success_response(
        {"item": stored.to_record()},
        201 if created else 200,
    )


def _delete(service: CollectionService, entity_id: str) -> Tuple[Dict[str, Any], int]:
    removed = service.delete(entity_id)
    return _success_response({"id": entity_id, "deleted": removed})


# ============================================================================
# Health Check
# ============================================================================

@api_bp.route("/health", methods=["GET"])
def health_check() -> Tuple[Dict[str, Any], int]:
    """Health check endpoint."""
    return _success_response({
        "status": "healthy",
        "service": "noreply-pro",
        "version": "1.0.0",
        "substrate": type(_storage().substrate).__name__,
    })


# ============================================================================
# Follow-ups
# ============================================================================

@api_bp.route("/follow-ups", methods=["GET"])
def list_follow_ups() -> Tuple[Dict[str, Any], int]:
    """List follow-ups, most recent first."""
    return _list(_storage().follow_ups, "follow_ups")


@api_bp.route("/follow-ups", methods=["POST"])
def create_follow_up() -> Tuple[Dict[str, Any], int]:
    """
    Create a follow-up.

    A body carrying an id updates that follow-up instead.
    """
    payload = parse_payload(FollowUpPayload, _json_body())
    return _save(_storage().follow_ups, payload.to_entity(), created=not payload.id)


@api_bp.route("/follow-ups/<follow_up_id>", methods=["PUT"])
def replace_follow_up(follow_up_id: str) -> Tuple[Dict[str, Any], int]:
    """Replace a follow-up by id (inserted if absent)."""
    payload = parse_payload(FollowUpPayload, _json_body())
    return _save(_storage().follow_ups, payload.to_entity(follow_up_id), created=False)


@api_bp.route("/follow-ups/<follow_up_id>", methods=["DELETE"])
def delete_follow_up(follow_up_id: str) -> Tuple[Dict[str, Any], int]:
    return _delete(_storage().follow_ups, follow_up_id)


# ============================================================================
# Automation Rules
# ============================================================================

@api_bp.route("/rules", methods=["GET"])
def list_rules() -> Tuple[Dict[str, Any], int]:
    """List automation rules, seeding the defaults on first access."""
    return _list(_storage().rules, "rules")


@api_bp.route("/rules", methods=["POST"])
def create_rule() -> Tuple[Dict[str, Any], int]:
    payload = parse_payload(RulePayload, _json_body())
    return _save(_storage().rules, payload.to_entity(), created=not payload.id)


@api_bp.route("/rules/<rule_id>", methods=["PUT"])
def replace_rule(rule_id: str) -> Tuple[Dict[str, Any], int]:
    payload = parse_payload(RulePayload, _json_body())
    return _save(_storage().rules, payload.to_entity(rule_id), created=False)


@api_bp.route("/rules/<rule_id>", methods=["DELETE"])
def delete_rule(rule_id: str) -> Tuple[Dict[str, Any], int]:
    return _delete(_storage().rules, rule_id)


# ============================================================================
# Templates
# ============================================================================

@api_bp.route("/templates", methods=["GET"])
def list_templates() -> Tuple[Dict[str, Any], int]:
    """List templates, seeding the default on first access."""
    return _list(_storage().templates, "templates")


@api_bp.route("/templates", methods=["POST"])
def create_template() -> Tuple[Dict[str, Any], int]:
    payload = parse_payload(TemplatePayload, _json_body())
    return _save(_storage().templates, payload.to_entity(), created=not payload.id)


@api_bp.route("/templates/<template_id>", methods=["PUT"])
def replace_template(template_id: str) -> Tuple[Dict[str, Any], int]:
    payload = parse_payload(TemplatePayload, _json_body())
    return _save(_storage().templates, payload.to_entity(template_id), created=False)


@api_bp.route("/templates/<template_id>", methods=["DELETE"])
def delete_template(template_id: str) -> Tuple[Dict[str, Any], int]:
    return _delete(_storage().templates, template_id)


# ============================================================================
# Bulk Operations
# ============================================================================

@api_bp.route("/export", methods=["GET"])
def export_all() -> Response:
    """
    Download every collection as one pretty-printed JSON document.

    Returns:
        Attachment named noreply-export-<date>.json.
    """
    bulk = _storage().bulk
    snapshot = bulk.export_snapshot()

    return Response(
        bulk.export_json(snapshot),
        mimetype="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{bulk.export_filename(snapshot)}"',
        },
    )


@api_bp.route("/purge", methods=["POST"])
def purge_all() -> Tuple[Dict[str, Any], int]:
    """
    Erase all local data.

    Request Body:
        confirm (bool): Must be true.
    """
    payload = parse_payload(PurgeRequest, _json_body())
    _storage().bulk.purge_all(confirm=payload.confirm)
    return _success_response({"message": "All local data erased"})


# ============================================================================
# AI Drafts
# ============================================================================

@api_bp.route("/drafts", methods=["POST"])
def generate_draft() -> Tuple[Dict[str, Any], int]:
    """
    Generate a follow-up draft.

    Request Body:
        recipient (str): Recipient name.
        context (str): What the previous exchange was about.
        tone (str): Writing tone.
        followUpId (str, optional): Store the draft as that follow-up's notes.
        saveAsTemplate (bool, optional): Store the draft as a new template.
        templateName (str, optional): Name for the new template.

    Returns:
        The draft and anything it was stored on.
    """
    payload = parse_payload(DraftPayload, _json_body())
    drafting = _drafting()

    draft = drafting.generate(payload.recipient, payload.context, payload.tone)
    result: Dict[str, Any] = {"draft": draft}

    if payload.follow_up_id:
        follow_up = drafting.attach_to_follow_up(payload.follow_up_id, draft)
        result["follow_up"] = follow_up.to_record()

    if payload.save_as_template:
        template = drafting.save_as_template(
            draft,
            payload.tone,
            name=payload.template_name,
            recipient_name=payload.recipient,
        )
        result["template"] = template.to_record()

    return _success_response(result)


# ============================================================================
# Error Handlers
# ============================================================================

@api_bp.errorhandler(BusinessError)
def handle_business_error(error: BusinessError) -> Tuple[Dict[str, Any], int]:
    """Handle business logic errors (4xx)."""
    logger.warning(
        f"Business error: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__}}
    )
    return _error_response(str(error), 400, type(error).__name__)


@api_bp.errorhandler(PersistenceUnavailableError)
def handle_persistence_unavailable(
    error: PersistenceUnavailableError,
) -> Tuple[Dict[str, Any], int]:
    """The write did not happen; stored data is unchanged."""
    return _error_response(str(error), 503, "persistence_unavailable")


@api_bp.errorhandler(ConfigurationError)
def handle_configuration_error(error: ConfigurationError) -> Tuple[Dict[str, Any], int]:
    logger.error(
        f"Configuration error: {error}",
        extra={"extra_fields": {"config_name": error.config_name}}
    )
    return _error_response(str(error), 503, "configuration_error")


@api_bp.errorhandler(DraftGenerationError)
def handle_draft_generation_error(
    error: DraftGenerationError,
) -> Tuple[Dict[str, Any], int]:
    return _error_response(str(error), 502, "draft_generation_error")


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error: Exception) -> Tuple[Dict[str, Any], int]:
    """Handle unexpected errors (500)."""
    logger.exception(
        f"Unexpected error: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__}}
    )
    return _error_response(
        "An unexpected error occurred",
        500,
        "internal_error",
    )
