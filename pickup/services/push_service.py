"""
Web push delivery via pywebpush.

A push endpoint that answers 404 or 410 is gone for good; callers delete the
subscription. Every other failure is transient.
"""

import json
import requests
from flask import current_app
from pywebpush import webpush, WebPushException

from pickup.config import PushCredentials

GONE_STATUS_CODES = (404, 410)


class PushService:
    """Service for sending web push notifications signed with VAPID."""

    def __init__(self, credentials: PushCredentials):
        self.credentials = credentials

    def is_configured(self) -> bool:
        return self.credentials.is_configured

    def send(self, subscription_info: dict, payload: dict, timeout: float = None) -> dict:
        """
        Send one notification to one endpoint.

        Args:
            subscription_info: {'endpoint': ..., 'keys': {'p256dh': ..., 'auth': ...}}
            payload: JSON-serializable notification body
            timeout: Request timeout in seconds

        Returns:
            dict with 'success', 'gone', 'status_code', and 'error' keys
        """
        result = {
            'success': False,
            'gone': False,
            'status_code': None,
            'error': None
        }

        if not self.is_configured():
            result['error'] = 'VAPID keys not configured'
            return result

        try:
            webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self.credentials.private_key,
                vapid_claims=self.credentials.vapid_claims(),
                timeout=timeout,
            )
            result['success'] = True

        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            result['status_code'] = status_code
            result['gone'] = status_code in GONE_STATUS_CODES
            result['error'] = str(e)
            if not result['gone']:
                current_app.logger.error(f"Push notification error: {e}")

        except requests.exceptions.Timeout:
            result['error'] = f'Push delivery timed out after {timeout}s'
            current_app.logger.error(result['error'])

        except requests.exceptions.RequestException as e:
            result['error'] = str(e)
            current_app.logger.error(f"Push transport error: {e}")

        return result
