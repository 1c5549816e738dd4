from typing import Optional
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from errors import MissingAccessTokenError


class GoogleAuthService:
    """
    Wraps the signed-in user's bearer token into google-auth credentials.
    No refresh is attempted: the token is used exactly as the session holds it.
    """

    def __init__(self, access_token: Optional[str]):
        if not access_token:
            raise MissingAccessTokenError()
        self.creds = Credentials(token=access_token)

    def get_service(self, service_name: str, version: str):
        return build(service_name, version, credentials=self.creds, cache_discovery=False)
