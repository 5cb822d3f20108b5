"""OrgAuth: authentication, user accounts and organization membership over HTTP."""
