"""
app/models/user.py

Purpose: User document shape

Stored in the `users` collection:
- id: str (uuid4, public identifier)
- email: str (unique, lower-case)
- password_hash: str (bcrypt)
- role: str ("owner")
- email_verified: bool
- is_active: bool
- last_login: datetime | None
- created_at / updated_at: datetime
"""

import uuid
from datetime import datetime
from typing import Dict, Any

from utils.constants import USER_ROLE_OWNER


def new_user_document(email: str, password_hash: str, role: str = USER_ROLE_OWNER) -> Dict[str, Any]:
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "email": email.strip().lower(),
        "password_hash": password_hash,
        "role": role,
        "email_verified": False,
        "is_active": True,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
    }
