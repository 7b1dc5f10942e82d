"""FastAPI dependencies: admin password gate.

Usage in any privileged router:
    from src.dd_gateway.auth.dependencies import require_admin

    @router.post("/admin/thing", dependencies=[Depends(require_admin)])
    async def thing(): ...

POST routes carry the password in the JSON body, GET routes in the query
string. The comparison is a plain equality check against ADMIN_PASSWORD;
with no password configured every privileged call is rejected.
"""

from fastapi import Query
from pydantic import BaseModel

from config.settings import settings
from src.dd_common.errors import UnauthorizedError


class AdminRequest(BaseModel):
    password: str | None = None


def check_admin_password(password: str | None) -> None:
    expected = settings.ADMIN_PASSWORD
    if not expected or password != expected:
        raise UnauthorizedError()


async def require_admin(body: AdminRequest) -> None:
    check_admin_password(body.password)


async def require_admin_query(password: str | None = Query(None)) -> None:
    check_admin_password(password)
