"""Transactional emails (invitations, membership changes, password resets).

Messages are rendered here and posted to a Resend-compatible HTTP API.
Sends happen after the related database commit and are best effort: use
`notify()` so a delivery failure is logged without failing the request.
"""

from __future__ import annotations

import asyncio
import html as html_module
import logging
import random
from typing import Any, Awaitable, Callable

import httpx

from mediature.core.config import settings

logger = logging.getLogger(__name__)

MAILER_MAX_ATTEMPTS = 3
MAILER_RETRY_BASE_DELAY = 0.5
MAILER_RETRY_MAX_DELAY = 4.0
MAILER_TIMEOUT_SECONDS = 20.0
RETRY_STATUSES = {429, 500, 502, 503, 504}

SendResult = dict[str, Any]


def _retry_delay(attempt: int) -> float:
    delay = min(MAILER_RETRY_MAX_DELAY, MAILER_RETRY_BASE_DELAY * (2**attempt))
    return delay + random.uniform(0, delay / 2)


async def _post_with_retries(client: httpx.AsyncClient, payload: dict, headers: dict) -> httpx.Response:
    """POST with exponential backoff on transport errors and retryable statuses."""
    for attempt in range(MAILER_MAX_ATTEMPTS):
        last_attempt = attempt >= MAILER_MAX_ATTEMPTS - 1
        try:
            response = await client.post(settings.MAILER_API_URL, headers=headers, json=payload)
        except httpx.RequestError as exc:
            if last_attempt:
                raise
            logger.warning("Mail API request failed, retrying", exc_info=exc)
            await asyncio.sleep(_retry_delay(attempt))
            continue

        if response.status_code in RETRY_STATUSES and not last_attempt:
            logger.warning("Mail API returned %s, retrying", response.status_code)
            await asyncio.sleep(_retry_delay(attempt))
            continue

        return response

    return response


async def _deliver(*, to_email: str, subject: str, html: str, text: str) -> SendResult:
    """Send one message through the mail API."""
    if not settings.mailer_configured:
        return {"success": False, "error": "Mailer not configured (missing MAILER_API_KEY)"}

    payload = {
        "from": settings.MAILER_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html,
        "text": text,
    }
    headers = {
        "Authorization": f"Bearer {settings.MAILER_API_KEY}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(timeout=MAILER_TIMEOUT_SECONDS) as client:
        response = await _post_with_retries(client, payload, headers)

    if 200 <= response.status_code < 300:
        message_id = response.json().get("id")
        return {"success": True, "message_id": message_id}

    return {"success": False, "error": f"Mail API returned {response.status_code}"}


def _to_html(text: str) -> str:
    paragraphs = [p for p in text.strip().split("\n\n") if p.strip()]
    return "".join(
        f"<p>{html_module.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )


def _greeting(firstname: str | None) -> str:
    return f"Bonjour {firstname}," if firstname else "Bonjour,"


def _full_name(firstname: str | None, lastname: str | None) -> str:
    return " ".join(part for part in (firstname, lastname) if part)


# =============================================================================
# Templates
# =============================================================================

async def send_sign_up_invitation_as_agent(
    *,
    recipient: str,
    firstname: str | None,
    lastname: str | None,
    originator_firstname: str,
    originator_lastname: str,
    authority_name: str,
    sign_up_url_with_token: str,
) -> SendResult:
    originator = _full_name(originator_firstname, originator_lastname)
    subject = f"Invitation à rejoindre {authority_name} en tant que médiateur"
    text = f"""{_greeting(firstname)}

{originator} vous invite à rejoindre la collectivité {authority_name} sur Médiature en tant que médiateur.

Pour créer votre compte, suivez ce lien :
{sign_up_url_with_token}

Si vous n'attendiez pas cette invitation, vous pouvez ignorer ce message.
"""
    return await _deliver(to_email=recipient, subject=subject, html=_to_html(text), text=text)


async def send_sign_up_invitation_as_admin(
    *,
    recipient: str,
    firstname: str | None,
    lastname: str | None,
    originator_firstname: str,
    originator_lastname: str,
    sign_up_url_with_token: str,
) -> SendResult:
    originator = _full_name(originator_firstname, originator_lastname)
    subject = "Invitation à rejoindre Médiature en tant qu'administrateur"
    text = f"""{_greeting(firstname)}

{originator} vous invite à rejoindre Médiature en tant qu'administrateur.

Pour créer votre compte, suivez ce lien :
{sign_up_url_with_token}

Si vous n'attendiez pas cette invitation, vous pouvez ignorer ce message.
"""
    return await _deliver(to_email=recipient, subject=subject, html=_to_html(text), text=text)


async def send_new_authority_as_agent(
    *,
    recipient: str,
    firstname: str,
    authority_name: str,
    authority_url: str,
) -> SendResult:
    subject = f"Vous êtes maintenant médiateur de {authority_name}"
    text = f"""{_greeting(firstname)}

Vous avez été ajouté en tant que médiateur de la collectivité {authority_name}.

Accédez à son espace ici :
{authority_url}
"""
    return await _deliver(to_email=recipient, subject=subject, html=_to_html(text), text=text)


async def send_authority_agent_removed(
    *,
    recipient: str,
    firstname: str,
    authority_name: str,
) -> SendResult:
    subject = f"Vous ne faites plus partie de {authority_name}"
    text = f"""{_greeting(firstname)}

Vous avez été retiré des médiateurs de la collectivité {authority_name}. Les dossiers qui vous étaient attribués ont été libérés.
"""
    return await _deliver(to_email=recipient, subject=subject, html=_to_html(text), text=text)


async def send_password_reset(
    *,
    recipient: str,
    firstname: str,
    reset_password_url_with_token: str,
    expires_minutes: int,
) -> SendResult:
    subject = "Réinitialisation de votre mot de passe"
    text = f"""{_greeting(firstname)}

Une demande de réinitialisation du mot de passe de votre compte Médiature a été faite.

Pour définir un nouveau mot de passe, suivez ce lien (valable {expires_minutes} minutes) :
{reset_password_url_with_token}

Si vous n'êtes pas à l'origine de cette demande, vous pouvez ignorer ce message.
"""
    return await _deliver(to_email=recipient, subject=subject, html=_to_html(text), text=text)


async def notify(send: Callable[..., Awaitable[SendResult]], **kwargs: Any) -> SendResult:
    """
    Run a send after a committed mutation.

    Failures are logged and reported in the result, never raised.
    """
    try:
        result = await send(**kwargs)
    except Exception as exc:
        logger.exception("Error sending email with %s", send.__name__)
        return {"success": False, "error": str(exc)}

    if not result.get("success"):
        logger.warning("Failed to send email with %s: %s", send.__name__, result.get("error"))
    return result
