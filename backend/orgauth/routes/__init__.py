# Routes exports
from orgauth.routes.auth import router as auth_router
from orgauth.routes.users import router as users_router
from orgauth.routes.organizations import router as organizations_router
