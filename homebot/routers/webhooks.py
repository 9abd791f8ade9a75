"""
Webhooks router - trigger Home Assistant webhooks over HTTP.

The flow for POST /webhook/{id}:
1. Optional X-API-Key check (REQUIRE_WEBHOOK_AUTH)
2. Resolve the webhook by id or external alias
3. Normalize the body, fill gaps from the optional "text" field, validate
4. Dispatch and report {success, message, ...}

No language model is involved: the caller already knows what to run.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from homebot.ai.actions.extraction import ParameterExtractor
from homebot.ai.actions.registry import ActionKind, ActionRegistry
from homebot.ai.actions.validation import ParameterValidator, format_validation_error
from homebot.ai.schemas.function_call import FunctionCall
from homebot.deps import get_executor, get_registry, verify_webhook_api_key
from homebot.services.dispatch import DispatchExecutor

# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(tags=["webhooks"])


@router.post("/webhook/{webhook_id}", dependencies=[Depends(verify_webhook_api_key)])
async def trigger_webhook(
    webhook_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    registry: ActionRegistry = Depends(get_registry),
    executor: DispatchExecutor = Depends(get_executor),
):
    """
    Trigger a webhook with a JSON parameter body.

    A "text" field, when present, is used as free text to extract missing
    parameters from ("turn off the office lights").

    Returns:
        200 {"success": true, "message": ..., "data": ...}
        404 {"success": false, "error": ...} unknown webhook
        422 {"success": false, "error": ..., "validation": ...} bad parameters
        502 {"success": false, "error": ...} Home Assistant failed
    """
    definition = registry.find(webhook_id)
    if definition is None or definition.kind != ActionKind.REMOTE_WEBHOOK:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f"Webhook '{webhook_id}' not found"},
        )

    body = dict(payload or {})
    text = body.pop("text", "") if isinstance(body.get("text"), str) else ""

    extractor = ParameterExtractor(registry)
    params = extractor.extract(text, definition.id, extractor.normalize(definition.id, body))
    report = ParameterValidator(registry).validate(definition.id, params)
    if not report.is_valid:
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": format_validation_error(definition.id, report),
                "validation": report.to_dict(),
            },
        )

    result = await executor.execute(
        FunctionCall.remote(definition.id, params),
        params,
        origin_text=text or f"POST /webhook/{webhook_id}",
    )
    if not result.succeeded:
        return JSONResponse(
            status_code=502,
            content={"success": False, "error": result.user_message},
        )

    return {
        "success": True,
        "webhook": definition.id,
        "message": result.user_message,
        "data": result.raw,
    }


@router.get("/webhooks")
def list_webhooks(registry: ActionRegistry = Depends(get_registry)) -> List[Dict[str, Any]]:
    """List registered webhooks with their parameter schemas."""
    return [
        {
            "id": webhook.id,
            "external_id": webhook.alias,
            "description": webhook.description,
            "parameters": {
                name: {**param.to_json_schema(), "required": param.required}
                for name, param in webhook.parameter_schema.items()
            },
            "examples": list(webhook.examples),
        }
        for webhook in registry.list(ActionKind.REMOTE_WEBHOOK)
    ]
