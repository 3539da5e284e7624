"""
AWS SSM Parameter Store access.

Used at startup (USE_SSM=true) to pull Twilio and WMATA secrets instead of
keeping them in the environment.
"""

import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config.settings import Settings
from core.exceptions import ParameterStoreError

logger = logging.getLogger(__name__)

# settings attribute -> settings attribute holding the SSM parameter name
_SECRET_PARAMS = {
    "TWILIO_ACCOUNT_SID": "SSM_TWILIO_ACCOUNT_SID_PARAM",
    "TWILIO_AUTH_TOKEN": "SSM_TWILIO_AUTH_TOKEN_PARAM",
    "TWILIO_FROM_NUMBER": "SSM_TWILIO_FROM_NUMBER_PARAM",
    "WMATA_API_KEY": "SSM_WMATA_API_KEY_PARAM",
}


class ParameterStore:
    def __init__(self, region: Optional[str] = None, client=None):
        self.client = client or boto3.client("ssm", region_name=region or "us-east-1")

    def get_parameter(self, name: str) -> str:
        """Decrypted value of a single parameter."""
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            raise ParameterStoreError(f"Failed to retrieve parameter {name}: {e}") from e
        value = (response.get("Parameter") or {}).get("Value")
        if not value:
            raise ParameterStoreError(f"Parameter {name} not found or has no value")
        return value

    def get_parameters(self, names: List[str]) -> Dict[str, str]:
        """Decrypted values keyed by parameter name. Any invalid name is an error."""
        try:
            response = self.client.get_parameters(Names=names, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            raise ParameterStoreError(f"Failed to retrieve parameters: {e}") from e
        invalid = response.get("InvalidParameters") or []
        if invalid:
            raise ParameterStoreError(f"Invalid parameters: {', '.join(invalid)}")
        return {
            p["Name"]: p["Value"]
            for p in response.get("Parameters") or []
            if p.get("Name") and p.get("Value")
        }


def hydrate_settings(settings: Settings, store: ParameterStore) -> Settings:
    """
    Fill secret settings from SSM. Values already present in the environment win.
    Returns the same settings object.
    """
    wanted = {
        attr: getattr(settings, param_attr)
        for attr, param_attr in _SECRET_PARAMS.items()
        if not getattr(settings, attr)
    }
    if not wanted:
        return settings

    # GetParameters accepts at most 10 names per call; we never ask for more
    values = store.get_parameters(list(wanted.values()))
    for attr, param_name in wanted.items():
        if param_name not in values:
            raise ParameterStoreError(f"Parameter {param_name} not found or has no value")
        setattr(settings, attr, values[param_name])
    logger.info("Loaded %d secret(s) from SSM: %s", len(wanted), ", ".join(sorted(wanted)))
    return settings
