import os
import json
import logging
from dotenv import load_dotenv
from typing import Optional

from fastapi import Header, HTTPException, Depends
from elasticsearch import Elasticsearch
from firebase_admin import credentials, initialize_app, get_app, _apps, firestore as admin_firestore
from google.cloud import secretmanager
from google.api_core import exceptions as gapi_exceptions

from app.config import settings
from app.errors import TravelError
from app.models.travel import AuthedUser
from app.services.auth_service import AuthService, get_auth_service
from app.services.travel_repository import TravelRepository
load_dotenv()
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


SERVICE_ACCOUNT_SECRET = os.getenv("SERVICE_ACCOUNT_SECRET")  # e.g. projects/PROJECT_ID/secrets/SA_KEY/versions/latest
GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")  # local path (dev)
PROJECT_ID = os.getenv("PROJECT_ID", settings.project_id)
DATABASE = os.getenv("DATABASE", settings.database)

def _access_secret_from_sm(resource_name: str) -> Optional[str]:
    """
    Given a full Secret Manager resource name (projects/.../secrets/.../versions/...),
    retrieve the secret payload (string).
    """
    try:
        client = secretmanager.SecretManagerServiceClient()
        response = client.access_secret_version(request={"name": resource_name})
        return response.payload.data.decode("UTF-8")
    except gapi_exceptions.GoogleAPIError as e:
        logger.exception("Unable to access secret %s: %s", resource_name, e)
        raise


def _init_firebase(cred: Optional[credentials.Base] = None):
    """
    Initialize firebase_admin with the given credential, or with Application
    Default Credentials when none is given. Idempotent.
    """
    if _apps:
        return get_app()

    options = {"projectId": PROJECT_ID} if PROJECT_ID else None
    app = initialize_app(cred, options)
    logger.info("Initialized firebase_admin (%s)", type(cred).__name__ if cred else "ADC")
    return app


def init_firebase_admin():
    """
    Initialize firebase_admin and return Firestore client.
    Order of preference:
      1) SERVICE_ACCOUNT_SECRET env var -> fetch JSON from Secret Manager
      2) GOOGLE_APPLICATION_CREDENTIALS env var -> local file path (dev)
      3) ADC (Cloud Run, or the Firestore emulator) -> initialize_app() without args
    """
    # 1) Secret Manager
    if SERVICE_ACCOUNT_SECRET:
        secret_res_name = SERVICE_ACCOUNT_SECRET
        # support shorthand secret ID (e.g., "SA_KEY") by turning it into a resource name if project id provided
        if not secret_res_name.startswith("projects/") and PROJECT_ID:
            secret_res_name = f"projects/{PROJECT_ID}/secrets/{SERVICE_ACCOUNT_SECRET}/versions/latest"
        logger.info("Loading service account from Secret Manager: %s", secret_res_name)
        sa_dict = json.loads(_access_secret_from_sm(secret_res_name))
        _init_firebase(credentials.Certificate(sa_dict))
        return admin_firestore.client(database_id=DATABASE)

    # 2) GOOGLE_APPLICATION_CREDENTIALS (local dev)
    if GOOGLE_APPLICATION_CREDENTIALS and os.path.exists(GOOGLE_APPLICATION_CREDENTIALS):
        logger.info("Loading service account from path: %s", GOOGLE_APPLICATION_CREDENTIALS)
        _init_firebase(credentials.Certificate(GOOGLE_APPLICATION_CREDENTIALS))
        return admin_firestore.client(database_id=DATABASE)

    # 3) ADC
    logger.info("No explicit service account provided, attempting Application Default Credentials (ADC)")
    _init_firebase()
    return admin_firestore.client(database_id=DATABASE)


# Lazily initialize single global clients to reuse across requests
_db_client = None
_es_client = None
_repository = None


def get_firestore_client():
    global _db_client
    if _db_client is None:
        _db_client = init_firebase_admin()
    return _db_client


def get_elasticsearch_client() -> Elasticsearch:
    global _es_client
    if _es_client is None:
        basic_auth = None
        if settings.elasticsearch_username:
            basic_auth = (settings.elasticsearch_username, settings.elasticsearch_password)
        _es_client = Elasticsearch(settings.elasticsearch_url, basic_auth=basic_auth)
        logger.info("Initialized Elasticsearch client: %s", settings.elasticsearch_url)
    return _es_client


def get_travel_repository() -> TravelRepository:
    global _repository
    if _repository is None:
        _repository = TravelRepository(get_firestore_client(), get_elasticsearch_client())
    return _repository


# ---------------------------
# FastAPI dependencies
# ---------------------------
def get_authed_user(
    authorization: Optional[str] = Header(None),
    authentication: Optional[str] = Header(None),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthedUser:
    """
    FastAPI dependency that reads the bearer token and returns the user it was
    issued for. The legacy `Authentication` header is accepted as a fallback.
    Use it as a parameter:
        def endpoint(user: AuthedUser = Depends(get_authed_user)):
            username = user.name
    """
    try:
        token = auth_service.extract_bearer_token(authorization, authentication)
        return AuthedUser(name=auth_service.verify_token(token))
    except TravelError as e:
        raise HTTPException(status_code=400, detail=str(e))

