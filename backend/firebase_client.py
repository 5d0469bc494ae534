import sys

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials, firestore


def init_firebase(project_id: str | None, client_email: str | None, private_key: str | None):
    """
    Initialize the Firebase Admin app from service-account env values.

    Returns (firestore_client, auth_module), or (None, None) when any
    credential is missing. `private_key` may carry literal "\\n" sequences
    (the usual way it is stored in .env files).
    """
    if private_key:
        private_key = private_key.replace("\\n", "\n")
    if not project_id or not client_email or not private_key:
        print(
            "[WARN] Firebase Admin not initialized - missing FIREBASE_PROJECT_ID, "
            "FIREBASE_CLIENT_EMAIL or FIREBASE_PRIVATE_KEY",
            file=sys.stderr,
        )
        return None, None

    try:
        firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate({
            "type": "service_account",
            "project_id": project_id,
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        })
        firebase_admin.initialize_app(cred, {"projectId": project_id})
        print(f"[OK] Firebase Admin initialized for project {project_id}")

    return firestore.client(), firebase_auth
