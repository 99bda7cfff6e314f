"""Shared boto3 client plumbing"""

from typing import Optional
import boto3
from botocore.config import Config

# botocore's own retries stay short; reconciliation retries on top of them
BOTO_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})


class BaseClient:
    def __init__(
        self,
        profile: Optional[str] = None,
        session: Optional[boto3.Session] = None,
        region: Optional[str] = None,
    ):
        self.profile = profile
        if session is not None:
            self.session = session
        elif profile:
            self.session = boto3.Session(profile_name=profile, region_name=region)
        else:
            self.session = boto3.Session(region_name=region)
        self.region = region

    def client(self, service: str, region_name: Optional[str] = None):
        """Create a boto3 client, defaulting to the session's region"""
        return self.session.client(
            service,
            region_name=region_name or self.region or self.session.region_name,
            config=BOTO_CONFIG,
        )
