# Core module exports
from orgauth.core.config import *
from orgauth.core.database import db, client
from orgauth.core.cache import cache
from orgauth.core.security import (
    hash_password,
    verify_password,
    create_token_pair,
    get_current_user,
    get_admin_user,
    security
)
