"""HTTP handlers: the provisioning form and its endpoints."""

import asyncio
from concurrent.futures import Executor
from html import escape

import structlog
from aiohttp import web
from pydantic import ValidationError

from folder_access_provisioner.config import Settings
from folder_access_provisioner.provisioning.models import ProvisioningRequest
from folder_access_provisioner.provisioning.service import DirectoryAdapter, Provisioner
from folder_access_provisioner.web.lookup import OrganizationalUnitLookup

logger = structlog.get_logger()

SETTINGS_KEY = web.AppKey("settings", Settings)
DIRECTORY_KEY = web.AppKey("directory", DirectoryAdapter)
OU_LOOKUP_KEY = web.AppKey("ou_lookup", OrganizationalUnitLookup)
PROVISIONER_KEY = web.AppKey("provisioner", Provisioner)
# Provisioning runs one at a time, off the event loop
PROVISIONING_EXECUTOR_KEY = web.AppKey("provisioning_executor", Executor)

_FORM_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Folder access provisioning</title></head>
<body>
<h1>Folder access provisioning</h1>
<form method="post" action="/provision">
  <p>
    <label for="folder_path">Folder</label><br>
    <input id="folder_path" name="folder_path" size="80" placeholder="\\\\fileserver\\share\\Finance" required>
  </p>
  <p>
    <label for="organizational_unit_path">Organizational unit</label><br>
    <input id="organizational_unit_path" name="organizational_unit_path" size="80"
           list="organizational_units" autocomplete="off" required>
    <datalist id="organizational_units">
{options}
    </datalist>
  </p>
  <p><button type="submit">Create groups and grant access</button></p>
</form>
</body>
</html>
"""


def render_form(lookup: OrganizationalUnitLookup) -> str:
    options = "\n".join(
        f'      <option value="{escape(dn, quote=True)}">' for dn in lookup.all()
    )
    return _FORM_TEMPLATE.format(options=options)


async def index(request: web.Request) -> web.Response:
    lookup: OrganizationalUnitLookup = request.app[OU_LOOKUP_KEY]
    return web.Response(text=render_form(lookup), content_type="text/html")


async def organizational_units(request: web.Request) -> web.Response:
    lookup: OrganizationalUnitLookup = request.app[OU_LOOKUP_KEY]
    query = request.query.get("q", "")
    return web.json_response({"organizational_units": lookup.suggest(query)})


async def provision(request: web.Request) -> web.Response:
    """Run one provisioning request and answer with its transcript as plain text."""
    provisioner: Provisioner = request.app[PROVISIONER_KEY]

    if request.content_type == "application/json":
        try:
            payload = await request.json()
        except ValueError:
            return web.Response(status=400, text="Request body is not valid JSON.")
        if not isinstance(payload, dict):
            return web.Response(status=400, text="Request body must be a JSON object.")
    else:
        payload = dict(await request.post())

    try:
        provisioning_request = ProvisioningRequest(**payload)
    except ValidationError as e:
        logger.info("provision_request_rejected", errors=e.error_count())
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return web.Response(status=400, text=f"Invalid request: {fields}")

    loop = asyncio.get_running_loop()
    outcome = await loop.run_in_executor(
        request.app[PROVISIONING_EXECUTOR_KEY], provisioner.provision, provisioning_request
    )
    return web.Response(text=outcome.text, content_type="text/plain")


async def health(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "healthy"})


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/", index)
    app.router.add_get("/api/organizational-units", organizational_units)
    app.router.add_post("/provision", provision)
    app.router.add_get("/health", health)
