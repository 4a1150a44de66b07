"""
FastAPI router for the call-flow webhook endpoints.

Key constraints:
- the provider must always receive a well-formed response quickly
- no state outside the callback URLs
- domain failures are never surfaced as non-2xx statuses
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from callrouter.routing.assets import FileAssetStore
from callrouter.shared.logging import correlation_id_var, get_logger
from callrouter.telephony.config import TelephonyConfig, get_telephony_config
from callrouter.telephony.factory import get_messaging_provider
from callrouter.telephony.interface import MessagingProvider
from callrouter.telephony.twiml import VoiceResponse
from callrouter.telephony.webhooks.handler import (
    NOTIFIER_PATH,
    SMS_TARGET_PARAM,
    VOICEMAIL_PATH,
    CallFlowHandler,
    RecordingEvent,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks/telephony", tags=["webhooks"])


def _xml(response: VoiceResponse) -> Response:
    body = response.to_xml()
    logger.debug("Generated voice response", extra={"twiml": body})
    return Response(content=body, media_type="application/xml")


async def _read_form(request: Request) -> dict[str, str]:
    if request.method != "POST":
        return {}
    try:
        form = await request.form()
    except Exception:
        logger.warning("Unreadable webhook form body; using query parameters only")
        return {}
    return {k: v for k, v in form.items() if isinstance(v, str)}


async def get_payload(request: Request) -> dict[str, str]:
    """Form body merged with query parameters (query wins)."""
    payload = await _read_form(request)
    payload.update(dict(request.query_params))

    call_sid = payload.get("CallSid")
    if call_sid:
        correlation_id_var.set(call_sid)

    return payload


def _signed_url(request: Request, config: TelephonyConfig) -> str:
    # the provider signs the public URL, which differs from request.url behind a proxy
    if not config.webhook_base_url:
        return str(request.url)
    url = config.webhook_base_url.rstrip("/") + request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


async def verify_signature(
    request: Request,
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
    messaging: Annotated[MessagingProvider, Depends(get_messaging_provider)],
) -> None:
    if not config.validate_signatures:
        return

    signature = request.headers.get("X-Twilio-Signature", "")
    params = await _read_form(request)
    url = _signed_url(request, config)

    if not messaging.validate_webhook_signature(params, signature, url):
        logger.warning("Rejected webhook with invalid signature", extra={"url": url})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "INVALID_SIGNATURE", "message": "Invalid webhook signature"},
        )


def get_call_flow_handler(
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
    messaging: Annotated[MessagingProvider, Depends(get_messaging_provider)],
) -> CallFlowHandler:
    return CallFlowHandler(
        config=config,
        asset_store=FileAssetStore(config.assets_dir),
        messaging=messaging,
    )


@router.api_route(
    "/forwarder",
    methods=["GET", "POST"],
    dependencies=[Depends(verify_signature)],
)
async def forwarder(
    payload: Annotated[dict[str, str], Depends(get_payload)],
    handler: Annotated[CallFlowHandler, Depends(get_call_flow_handler)],
) -> Response:
    logger.debug("Forwarder event received", extra={"payload": payload})

    response = await handler.forward(
        called_number=(payload.get("calledNumber") or "").strip(),
        caller=(payload.get("caller") or "").strip(),
    )
    return _xml(response)


@router.api_route(
    VOICEMAIL_PATH,
    methods=["GET", "POST"],
    dependencies=[Depends(verify_signature)],
)
async def voicemail(
    payload: Annotated[dict[str, str], Depends(get_payload)],
    handler: Annotated[CallFlowHandler, Depends(get_call_flow_handler)],
) -> Response:
    logger.info(
        "Voicemail fallback",
        extra={
            "dial_call_status": payload.get("DialCallStatus"),
            "sms_target": payload.get(SMS_TARGET_PARAM),
        },
    )

    response = handler.voicemail((payload.get(SMS_TARGET_PARAM) or "").strip())
    return _xml(response)


@router.api_route(
    NOTIFIER_PATH,
    methods=["GET", "POST"],
    dependencies=[Depends(verify_signature)],
)
async def send_sms(
    payload: Annotated[dict[str, str], Depends(get_payload)],
    handler: Annotated[CallFlowHandler, Depends(get_call_flow_handler)],
) -> dict[str, Any]:
    event = RecordingEvent(
        to=(payload.get("To") or "").strip(),
        call_from=(payload.get("CallFrom") or payload.get("From") or "").strip(),
        recording_url=(payload.get("RecordingUrl") or "").strip(),
        sms_target=(payload.get(SMS_TARGET_PARAM) or "").strip(),
        recording_sid=payload.get("RecordingSid"),
    )

    # Acknowledge regardless of the outcome: a redelivered callback would
    # only produce a duplicate text.
    await handler.notify(event)
    return {"status": "success"}
