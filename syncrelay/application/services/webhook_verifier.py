"""Clerk webhook signature verification.

Clerk delivers webhooks through Svix. The signed content is
"{svix-id}.{svix-timestamp}.{body}", HMAC-SHA256 with the endpoint secret,
checked by the `svix` library in constant time and within its timestamp
tolerance window.

Security contract:
- The raw body must be verified before it is parsed
- Missing secret -> ConfigurationError (500), never a silent pass
- Missing headers -> MissingSignatureHeadersError (400) naming each one
- Bad or stale signature -> SignatureVerificationError (400)
- Authentic body that is not a JSON object -> MalformedWebhookPayloadError (400)
- The secret and the signature value are never logged
"""

import json
from typing import Any, Mapping, Union

import structlog
from svix.webhooks import Webhook, WebhookVerificationError

from syncrelay.core.exceptions import (
    ConfigurationError,
    MalformedWebhookPayloadError,
    MissingSignatureHeadersError,
    SignatureVerificationError,
)

logger = structlog.get_logger(__name__)

SVIX_ID_HEADER = "svix-id"
SVIX_TIMESTAMP_HEADER = "svix-timestamp"
SVIX_SIGNATURE_HEADER = "svix-signature"
REQUIRED_HEADERS = (SVIX_ID_HEADER, SVIX_TIMESTAMP_HEADER, SVIX_SIGNATURE_HEADER)


def extract_signature_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Pick the Svix headers out of a request header mapping.

    Raises MissingSignatureHeadersError listing the absent ones, in
    id/timestamp/signature order.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    found = {name: lowered.get(name) for name in REQUIRED_HEADERS}
    missing = [name for name, value in found.items() if not value]

    if missing:
        logger.warning("Webhook missing signature headers", missing_headers=missing)
        raise MissingSignatureHeadersError(missing)

    return found


def verify_clerk_webhook(
    body: Union[bytes, str],
    headers: Mapping[str, str],
    secret: str | None,
) -> dict[str, Any]:
    """Verify a Clerk webhook delivery and return the parsed event."""
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET not configured, rejecting webhook")
        raise ConfigurationError(
            "CLERK_WEBHOOK_SECRET is not configured",
            details={"setting": "CLERK_WEBHOOK_SECRET"},
        )

    signature_headers = extract_signature_headers(headers)

    logger.debug(
        "Verifying webhook signature",
        svix_id=signature_headers[SVIX_ID_HEADER],
        svix_timestamp=signature_headers[SVIX_TIMESTAMP_HEADER],
        body_length=len(body),
    )

    try:
        webhook = Webhook(secret)
    except (ValueError, TypeError) as e:
        # Secret is not "whsec_" + base64
        logger.error("CLERK_WEBHOOK_SECRET is malformed", reason=type(e).__name__)
        raise SignatureVerificationError("Signature verification failed: malformed secret") from e

    try:
        webhook.verify(body, signature_headers)
    except WebhookVerificationError as e:
        logger.warning(
            "Webhook signature verification failed",
            reason=str(e),
            svix_id=signature_headers[SVIX_ID_HEADER],
        )
        raise SignatureVerificationError(f"Signature verification failed: {e}") from e
    except json.JSONDecodeError:
        # Older svix releases parse the body after a successful signature check
        pass
    except (ValueError, TypeError) as e:
        logger.warning("Webhook could not be verified", reason=str(e))
        raise SignatureVerificationError(f"Signature verification failed: {e}") from e

    # The return value of verify() differs across svix major versions
    event = parse_event_body(body)

    logger.info(
        "Webhook signature verified",
        event_type=event.get("type"),
        svix_id=signature_headers[SVIX_ID_HEADER],
    )
    return event


def parse_event_body(body: Union[bytes, str]) -> dict[str, Any]:
    """Parse an already authenticated body; it must be a JSON object."""
    try:
        event = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Authentic webhook body is not JSON", reason=str(e))
        raise MalformedWebhookPayloadError("Webhook payload is not valid JSON") from e

    if not isinstance(event, dict):
        logger.warning("Authentic webhook body is not a JSON object", json_type=type(event).__name__)
        raise MalformedWebhookPayloadError("Webhook payload is not a JSON object")

    return event
